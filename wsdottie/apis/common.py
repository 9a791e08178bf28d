"""
Pieces shared by the WSF families: base URLs, the cache-flush-date group and
the valid date range shape.
"""

from datetime import date

from wsdottie.cache import CACHE_FLUSH_GROUP, CacheStrategy
from wsdottie.descriptors import EndpointDescriptor, EndpointGroup
from wsdottie.validation import (
    CacheFlushDateValue,
    EmptyInput,
    PydanticSchema,
    WsdotDateTime,
    WsdotOutput,
)

WSF_ROOT = "https://www.wsdot.wa.gov/ferries/api"
WSDOT_TRAFFIC_ROOT = "https://wsdot.wa.gov/Traffic/api"
WSF_ACCESS_CODE_PARAM = "apiaccesscode"
WSDOT_ACCESS_CODE_PARAM = "AccessCode"

EMPTY_INPUT = PydanticSchema(EmptyInput)


def wsf_base_url(family: str) -> str:
    """e.g. ``wsf_base_url("fares")`` -> ``https://www.wsdot.wa.gov/ferries/api/fares/rest``"""
    return f"{WSF_ROOT}/{family}/rest"


def today_params():
    return {"TripDate": date.today()}


def cache_flush_date_group(family: str) -> EndpointGroup:
    """The ``cacheflushdate`` endpoint every WSF family publishes."""
    return EndpointGroup(
        name=CACHE_FLUSH_GROUP,
        cache_strategy=CacheStrategy.STATIC,
        endpoints=(
            EndpointDescriptor(
                function_name="get_cache_flush_date",
                url_template="/cacheflushdate",
                input_schema=EMPTY_INPUT,
                output_schema=PydanticSchema(CacheFlushDateValue, name="CacheFlushDate"),
                description=f"Date the WSF {family} data was last changed upstream.",
            ),
        ),
        summary=f"Change signal for cached WSF {family} data.",
        use_cases=("Invalidate cached static data when upstream data changes",),
        update_frequency="Polled every 5 minutes",
    )


class ValidDateRange(WsdotOutput):
    DateFrom: WsdotDateTime
    DateThru: WsdotDateTime


def valid_date_range_group(family: str) -> EndpointGroup:
    return EndpointGroup(
        name="valid-date-range",
        cache_strategy=CacheStrategy.STATIC,
        endpoints=(
            EndpointDescriptor(
                function_name="get_valid_date_range",
                url_template="/validdaterange",
                input_schema=EMPTY_INPUT,
                output_schema=PydanticSchema(ValidDateRange),
                description=f"Range of trip dates the WSF {family} API has data for.",
            ),
        ),
        summary="Trip dates with published data.",
        use_cases=("Bound date pickers", "Validate trip dates before other calls"),
        update_frequency="Daily",
    )
