"""
Tests for URL template resolution.
"""

from datetime import date

import pytest

from wsdottie.errors import TemplateError
from wsdottie.urls import resolve_url, template_tokens

BRIDGES = "https://wsdot.wa.gov/Traffic/api/Bridges/ClearanceREST.svc"
FARES = "https://www.wsdot.wa.gov/ferries/api/fares/rest"


class TestResolveUrl:

    def test_no_params_gives_bare_path(self):
        assert resolve_url(FARES, "/validdaterange", {}) == f"{FARES}/validdaterange"
        assert resolve_url(FARES, "/validdaterange") == f"{FARES}/validdaterange"

    def test_query_token_is_not_repeated(self):
        url = resolve_url(BRIDGES, "/GetClearancesAsJson?Route={Route}", {"Route": "005"})

        assert url == f"{BRIDGES}/GetClearancesAsJson?Route=005"
        assert url.count("Route=") == 1

    def test_path_values_are_formatted(self):
        url = resolve_url(
            FARES,
            "/faretotals/{TripDate}/{DepartingTerminalID}/{ArrivingTerminalID}/{RoundTrip}/{FareLineItemIDs}/{Quantities}",
            {
                "TripDate": date(2025, 1, 15),
                "DepartingTerminalID": 1,
                "ArrivingTerminalID": 10,
                "RoundTrip": False,
                "FareLineItemIDs": [1, 2],
                "Quantities": [3, 1],
            },
        )

        assert url == f"{FARES}/faretotals/2025-01-15/1/10/false/1,2/3,1"

    def test_remaining_fields_become_query_parameters_in_order(self):
        url = resolve_url(
            FARES,
            "/routes/{TripDate}",
            {"TripDate": date(2025, 1, 15), "OnlyActive": True, "Skip": None, "RegionID": 3},
        )

        assert url == f"{FARES}/routes/2025-01-15?OnlyActive=true&RegionID=3"

    def test_appends_to_existing_query_string(self):
        url = resolve_url(BRIDGES, "/GetClearancesAsJson?Route={Route}", {"Route": "005", "Limit": 5})

        assert url == f"{BRIDGES}/GetClearancesAsJson?Route=005&Limit=5"

    def test_path_values_are_url_encoded(self):
        assert resolve_url(FARES, "/search/{Name}", {"Name": "Bow Hill/Rd"}) == f"{FARES}/search/Bow%20Hill%2FRd"

    def test_base_url_trailing_slash(self):
        assert resolve_url(FARES + "/", "validdaterange") == f"{FARES}/validdaterange"

    def test_deterministic(self):
        params = {"TripDate": date(2025, 1, 15), "TerminalID": 1}

        urls = {resolve_url(FARES, "/terminalmates/{TripDate}/{TerminalID}", dict(params)) for _ in range(5)}
        assert len(urls) == 1

    def test_token_without_field_fails(self):
        with pytest.raises(TemplateError):
            resolve_url(FARES, "/terminalmates/{TripDate}/{TerminalID}", {"TripDate": date(2025, 1, 15)})

    def test_token_with_none_value_fails(self):
        with pytest.raises(TemplateError):
            resolve_url(BRIDGES, "/GetClearancesAsJson?Route={Route}", {"Route": None})


def test_template_tokens():
    assert template_tokens("/routes/{TripDate}/{DepartingTerminalID}?x={X}") == ["TripDate", "DepartingTerminalID", "X"]
    assert template_tokens("/vesselbasics") == []
