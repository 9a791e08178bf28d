"""
Live calls against the real WSDOT/WSF services.

Deselected by default; run with ``pytest -m live`` and WSDOT_ACCESS_TOKEN set.
"""

import asyncio

import pytest

from wsdottie.apis import get_api
from wsdottie.config import ClientSettings
from wsdottie.factory import create_api_functions
from wsdottie.http_client import WsdotHTTPClient
from wsdottie.query import QueryClient


@pytest.fixture(scope="module")
def live_client():
    """Real client; skips the module when no access code is configured"""
    settings = ClientSettings.from_env()
    if not settings.access_token:
        pytest.skip("WSDOT_ACCESS_TOKEN is not set")
    with WsdotHTTPClient(settings) as client:
        yield client


@pytest.mark.live
class TestLiveEndpoints:

    @pytest.mark.parametrize(
        "api_name, function_name",
        [
            ("wsf-vessels", "get_vessel_basics"),
            ("wsf-vessels", "get_vessel_locations"),
            ("wsf-terminals", "get_terminal_basics"),
            ("wsf-fares", "get_valid_date_range"),
            ("wsf-fares", "get_fare_totals"),
            ("wsf-schedule", "get_routes"),
            ("wsdot-bridge-clearances", "get_bridge_clearances"),
            ("wsdot-border-crossings", "get_border_crossings"),
        ],
    )
    def test_sample_call_validates(self, live_client, api_name, function_name):
        """The sample parameters produce a response that passes the output schema"""
        functions = create_api_functions(get_api(api_name), client=live_client)
        fetch = functions[function_name]

        result = fetch(fetch.descriptor.resolve_sample_params())

        assert result is not None

    def test_cache_flush_date(self, live_client):
        fetch = create_api_functions(get_api("wsf-terminals"), client=live_client)["get_cache_flush_date"]
        assert fetch() is not None

    def test_hook_round_trip(self, live_client):
        """A mounted hook fetches once and serves the second observer from cache"""
        hooks = create_api_functions(get_api("wsf-vessels"), QueryClient(), client=live_client).hooks

        async def scenario():
            async with hooks["get_vessel_basics"]() as first:
                first_result = await first.wait()
                async with hooks["get_vessel_basics"]() as second:
                    return first_result, second.result

        first_result, second_result = asyncio.run(scenario())
        assert first_result.is_success, first_result.error
        assert second_result.data is first_result.data
