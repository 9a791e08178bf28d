"""
Tests for the command line interface, with the HTTP client mocked.
"""

import json
import sys
from datetime import date, datetime, timezone
from unittest.mock import patch

import pandas as pd
import pytest
from loguru import logger

from wsdottie.apis import get_api
from wsdottie.apis.wsf_fares import FaresTerminal
from wsdottie.cli import main, parse_params
from wsdottie.config import ClientSettings
from wsdottie.errors import InvalidResponseError, TransportError

TERMINALS = [
    FaresTerminal(TerminalID=1, Description="Anacortes"),
    FaresTerminal(TerminalID=10, Description="Friday Harbor"),
    FaresTerminal(TerminalID=15, Description="Orcas Island"),
]


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def http():
    """The client instance cmd_fetch/cmd_check get from ``with WsdotHTTPClient(...)``"""
    with patch("wsdottie.cli.ClientSettings.from_env", return_value=ClientSettings(access_token="test-token")), \
            patch("wsdottie.cli.WsdotHTTPClient") as client_cls:
        yield client_cls.return_value.__enter__.return_value


class TestParseParams:

    def test_dates_are_coerced(self):
        params = parse_params('{"TripDate": "2025-01-15", "TerminalID": 1, "Route": "005"}')
        assert params == {"TripDate": date(2025, 1, 15), "TerminalID": 1, "Route": "005"}

    def test_invalid_json(self):
        with pytest.raises(ValueError, match="not valid JSON"):
            parse_params("{TripDate: today}")

    def test_not_an_object(self):
        with pytest.raises(ValueError, match="JSON object"):
            parse_params("[1, 2]")


class TestList:

    def test_lists_every_api(self, capsys):
        assert main(["-q", "list"]) == 0

        out = capsys.readouterr().out
        assert "get_fare_totals" in out
        assert "get_bridge_clearances" in out
        assert "REALTIME" in out

    def test_single_api(self, capsys):
        assert main(["-q", "list", "--api", "wsf-vessels"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines
        assert all(line.startswith("wsf-vessels") for line in lines)

    def test_unknown_api(self):
        assert main(["-q", "list", "--api", "wsf-tolls"]) == 2


class TestFetch:

    def test_prints_validated_result(self, http, capsys):
        http.fetch.return_value = TERMINALS

        assert main(["-q", "fetch", "get_fares_terminals", '{"TripDate": "2025-01-15"}']) == 0

        assert http.fetch.call_args.args[2] == {"TripDate": date(2025, 1, 15)}
        printed = json.loads(capsys.readouterr().out)
        assert printed[0] == {"TerminalID": 1, "Description": "Anacortes"}
        assert len(printed) == 3

    def test_sample_params_when_none_given(self, http):
        http.fetch.return_value = []

        assert main(["-q", "fetch", "get_vessel_basics_by_vessel_id"]) == 0

        assert http.fetch.call_args.args[2] == {"VesselID": 1}

    def test_head(self, http, capsys):
        http.fetch.return_value = TERMINALS

        assert main(["-q", "fetch", "get_fares_terminals", '{"TripDate": "2025-01-15"}', "--head", "1"]) == 0

        assert len(json.loads(capsys.readouterr().out)) == 1

    def test_csv(self, http, tmp_path, capsys):
        http.fetch.return_value = TERMINALS
        path = tmp_path / "terminals.csv"

        assert main(["-q", "fetch", "get_fares_terminals", '{"TripDate": "2025-01-15"}', "--csv", str(path)]) == 0

        df = pd.read_csv(path)
        assert list(df.columns) == ["TerminalID", "Description"]
        assert df["Description"].tolist() == ["Anacortes", "Friday Harbor", "Orcas Island"]
        assert capsys.readouterr().out == ""

    def test_api_error_exit_code(self, http):
        http.fetch.side_effect = TransportError("HTTP 503 Service Unavailable", endpoint="get_vessel_locations")

        assert main(["-q", "fetch", "get_vessel_locations"]) == 1

    def test_ambiguous_function_name(self, http):
        assert main(["-q", "fetch", "get_cache_flush_date"]) == 2
        http.fetch.assert_not_called()

    def test_ambiguous_function_name_with_api(self, http, capsys):
        http.fetch.return_value = None

        assert main(["-q", "fetch", "get_cache_flush_date", "--api", "wsf-fares"]) == 0
        assert capsys.readouterr().out.strip() == "null"

    def test_validated_by_default(self, http):
        http.fetch.return_value = []

        assert main(["-q", "fetch", "get_vessel_locations"]) == 0
        assert http.fetch.call_args.kwargs["validate"] is True

    def test_no_validation_prints_raw_response(self, http, capsys):
        http.fetch.return_value = {"VesselID": 1, "TimeStamp": datetime(2025, 1, 15, 8, 30, tzinfo=timezone.utc)}

        assert main(["-q", "fetch", "get_vessel_locations_by_vessel_id", '{"VesselID": 1}', "--no-validation"]) == 0

        assert http.fetch.call_args.kwargs["validate"] is False
        assert json.loads(capsys.readouterr().out) == {"VesselID": 1, "TimeStamp": "2025-01-15T08:30:00Z"}

    def test_bad_params(self, http):
        assert main(["-q", "fetch", "get_fares_terminals", "not json"]) == 2
        http.fetch.assert_not_called()


class TestCheck:

    def test_descriptors_only(self, http):
        assert main(["-q", "check"]) == 0
        http.fetch.assert_not_called()

    def test_live_all_ok(self, http):
        http.fetch.return_value = []

        assert main(["-q", "check", "--api", "wsf-vessels", "--live"]) == 0
        assert http.fetch.call_count == len(list(get_api("wsf-vessels").iter_endpoints()))

    def test_live_failures(self, http):
        def fetch(api, descriptor, params=None, validate=True):
            if descriptor.function_name == "get_vessel_locations":
                raise InvalidResponseError("Response failed validation", endpoint=descriptor.function_name)
            return []

        http.fetch.side_effect = fetch

        assert main(["-q", "check", "--api", "wsf-vessels", "--live"]) == 1

    def test_live_without_validation(self, http):
        http.fetch.return_value = {"unexpected": "shape"}

        assert main(["-q", "check", "--api", "wsf-vessels", "--live", "--no-validation"]) == 0
        assert all(call.kwargs["validate"] is False for call in http.fetch.call_args_list)
