"""WSF schedule: valid date range, routes and terminals served on a trip date."""

from datetime import date
from typing import List

from pydantic import PositiveInt

from wsdottie.apis.common import (
    WSF_ACCESS_CODE_PARAM,
    cache_flush_date_group,
    today_params,
    valid_date_range_group,
    wsf_base_url,
)
from wsdottie.cache import CacheStrategy
from wsdottie.descriptors import ApiDescriptor, EndpointDescriptor, EndpointGroup
from wsdottie.validation import PydanticSchema, WsdotInput, WsdotOutput


class TripDateInput(WsdotInput):
    TripDate: date


class RoutesByTerminalsInput(WsdotInput):
    TripDate: date
    DepartingTerminalID: PositiveInt
    ArrivingTerminalID: PositiveInt


class Route(WsdotOutput):
    RouteID: int
    RouteAbbrev: str
    Description: str
    RegionID: int


class ScheduleTerminal(WsdotOutput):
    TerminalID: int
    Description: str


SCHEDULE = ApiDescriptor(
    name="wsf-schedule",
    base_url=wsf_base_url("schedule"),
    access_code_param=WSF_ACCESS_CODE_PARAM,
    endpoint_groups=(
        cache_flush_date_group("schedule"),
        valid_date_range_group("schedule"),
        EndpointGroup(
            name="routes",
            cache_strategy=CacheStrategy.STATIC,
            endpoints=(
                EndpointDescriptor(
                    function_name="get_routes",
                    url_template="/routes/{TripDate}",
                    input_schema=PydanticSchema(TripDateInput),
                    output_schema=PydanticSchema(List[Route], name="List[Route]"),
                    sample_params=today_params,
                    description="Routes operating on a trip date.",
                ),
                EndpointDescriptor(
                    function_name="get_routes_by_terminals",
                    url_template="/routes/{TripDate}/{DepartingTerminalID}/{ArrivingTerminalID}",
                    input_schema=PydanticSchema(RoutesByTerminalsInput),
                    output_schema=PydanticSchema(List[Route], name="List[Route]"),
                    sample_params=lambda: {"TripDate": date.today(), "DepartingTerminalID": 1, "ArrivingTerminalID": 10},
                    description="Routes between two terminals on a trip date.",
                ),
            ),
            summary="Route identifiers and descriptions.",
            use_cases=("Resolve a route ID for schedule lookups",),
            update_frequency="Daily",
        ),
        EndpointGroup(
            name="schedule-terminals",
            cache_strategy=CacheStrategy.STATIC,
            endpoints=(
                EndpointDescriptor(
                    function_name="get_schedule_terminals",
                    url_template="/terminals/{TripDate}",
                    input_schema=PydanticSchema(TripDateInput),
                    output_schema=PydanticSchema(List[ScheduleTerminal], name="List[ScheduleTerminal]"),
                    sample_params=today_params,
                    description="Terminals with scheduled departures on a trip date.",
                ),
            ),
            summary="Departure terminals for a trip date.",
            use_cases=("Populate a departure picker",),
            update_frequency="Daily",
        ),
    ),
)
