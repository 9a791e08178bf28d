"""
Tests for the pydantic-backed schema adapter.
"""

from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from wsdottie.apis.common import ValidDateRange
from wsdottie.apis.wsdot_bridge_clearances import BridgeClearancesInput
from wsdottie.apis.wsf_fares import FareTotalsInput, FaresTerminal
from wsdottie.apis.wsf_vessels import VesselLocation
from wsdottie.errors import SchemaValidationError
from wsdottie.validation import CacheFlushDateValue, PydanticSchema, format_path, parse


@pytest.fixture
def vessel_location_raw():
    return {
        "VesselID": 2,
        "VesselName": "Chelan",
        "Mmsi": 366709770,
        "DepartingTerminalID": 1,
        "DepartingTerminalName": "Anacortes",
        "DepartingTerminalAbbrev": "ANA",
        "ArrivingTerminalID": None,
        "ArrivingTerminalName": None,
        "ArrivingTerminalAbbrev": None,
        "Latitude": 48.5,
        "Longitude": -122.68,
        "Speed": 0,
        "Heading": 180,
        "InService": True,
        "AtDock": True,
        "LeftDock": None,
        "Eta": None,
        "EtaBasis": None,
        "ScheduledDeparture": "/Date(1756263900000-0700)/",
        "OpRouteAbbrev": ["ana-sj"],
        "TimeStamp": "/Date(1756263000000-0700)/",
        "VesselWatchShutID": 4,
    }


def fare_totals_params(**overrides):
    params = {
        "TripDate": "2025-01-15",
        "DepartingTerminalID": 1,
        "ArrivingTerminalID": 10,
        "RoundTrip": False,
        "FareLineItemIDs": [1, 2],
        "Quantities": [1, 1],
    }
    params.update(overrides)
    return params


class TestParse:

    def test_valid_body_is_returned_unchanged(self):
        schema = PydanticSchema(FaresTerminal)
        parsed = parse(schema, {"TerminalID": 7, "Description": "Anacortes"})

        assert parsed.model_dump() == {"TerminalID": 7, "Description": "Anacortes"}

    def test_missing_field_issue_names_the_field(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            parse(PydanticSchema(FaresTerminal), {"TerminalID": 7})

        assert [issue.path for issue in exc_info.value.issues] == ["Description"]

    def test_issue_paths_index_into_arrays(self):
        body = [{"TerminalID": 1, "Description": "Anacortes"}, {"TerminalID": "x", "Description": "Friday Harbor"}]

        with pytest.raises(SchemaValidationError) as exc_info:
            parse(PydanticSchema(List[FaresTerminal]), body)

        assert [issue.path for issue in exc_info.value.issues] == ["[1].TerminalID"]

    def test_wire_dates_decoded_in_same_pass(self, vessel_location_raw):
        location = parse(PydanticSchema(VesselLocation), vessel_location_raw)

        assert isinstance(location.TimeStamp, datetime)
        assert location.TimeStamp.utcoffset() == timedelta(hours=-7)
        assert location.LeftDock is None

    def test_invalid_wire_date_is_an_issue(self, vessel_location_raw):
        vessel_location_raw["TimeStamp"] = "yesterday"

        with pytest.raises(SchemaValidationError) as exc_info:
            parse(PydanticSchema(VesselLocation), vessel_location_raw)

        assert [issue.path for issue in exc_info.value.issues] == ["TimeStamp"]

    @pytest.mark.parametrize("value", [1730000000000, ["/Date(1000)/"], {"ms": 1000}, True])
    def test_non_string_wire_date_is_an_issue(self, vessel_location_raw, value):
        vessel_location_raw["TimeStamp"] = value

        with pytest.raises(SchemaValidationError) as exc_info:
            parse(PydanticSchema(VesselLocation), vessel_location_raw)

        assert [issue.path for issue in exc_info.value.issues] == ["TimeStamp"]

    def test_nullable_field_is_still_required(self, vessel_location_raw):
        del vessel_location_raw["Eta"]

        with pytest.raises(SchemaValidationError) as exc_info:
            parse(PydanticSchema(VesselLocation), vessel_location_raw)

        assert [issue.path for issue in exc_info.value.issues] == ["Eta"]

    def test_parse_is_idempotent(self, vessel_location_raw):
        schema = PydanticSchema(VesselLocation)
        parsed = schema.parse(vessel_location_raw)

        assert schema.parse(parsed) == parsed
        assert schema.parse(parsed.model_dump()) == parsed

    def test_list_parse_is_idempotent(self):
        schema = PydanticSchema(List[ValidDateRange])
        parsed = schema.parse([{"DateFrom": "/Date(1756263900277-0700)/", "DateThru": "/Date(1756859700277-0700)/"}])

        assert schema.parse(parsed) == parsed

    def test_nothing_is_returned_on_partial_failure(self):
        schema = PydanticSchema(List[FaresTerminal])
        body = [{"TerminalID": 1, "Description": "Anacortes"}, {"TerminalID": 2}]

        with pytest.raises(SchemaValidationError):
            schema.parse(body)


class TestInputSchemas:

    def test_unknown_parameters_are_rejected(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            parse(PydanticSchema(BridgeClearancesInput), {"Route": "005", "route": "005"})

        assert [issue.path for issue in exc_info.value.issues] == ["route"]

    def test_fare_totals_length_mismatch(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            parse(PydanticSchema(FareTotalsInput), fare_totals_params(Quantities=[1, 1, 1]))

        issues = exc_info.value.issues
        assert [issue.path for issue in issues] == ["Quantities"]
        assert "same length" in issues[0].message

    def test_fare_totals_equal_lengths_pass(self):
        parsed = parse(PydanticSchema(FareTotalsInput), fare_totals_params())

        assert parsed.FareLineItemIDs == [1, 2]
        assert parsed.Quantities == [1, 1]

    def test_field_names_in_declaration_order(self):
        schema = PydanticSchema(FareTotalsInput)

        assert schema.field_names() == (
            "TripDate",
            "DepartingTerminalID",
            "ArrivingTerminalID",
            "RoundTrip",
            "FareLineItemIDs",
            "Quantities",
        )

    def test_field_names_empty_for_non_models(self):
        assert PydanticSchema(List[FaresTerminal]).field_names() == ()


class TestCacheFlushDateValue:

    @pytest.fixture
    def schema(self):
        return PydanticSchema(CacheFlushDateValue)

    def test_bare_wire_string(self, schema):
        assert schema.parse("/Date(0)/") == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_wrapped_in_object(self, schema):
        assert schema.parse({"CacheFlushDate": "/Date(0)/"}) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("raw", [None, {}, {"CacheFlushDate": None}])
    def test_missing_means_no_flush_info(self, schema, raw):
        assert schema.parse(raw) is None


@pytest.mark.parametrize(
    "loc, expected",
    [
        ((), ""),
        (("Description",), "Description"),
        ((2, "TerminalID"), "[2].TerminalID"),
        (("items", 2, "TerminalID"), "items[2].TerminalID"),
        (("BorderCrossingLocation", "Latitude"), "BorderCrossingLocation.Latitude"),
    ],
)
def test_format_path(loc, expected):
    assert format_path(loc) == expected
