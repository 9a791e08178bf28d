"""
WSF fares: terminals, terminal mates, fare line items and fare totals.

Every fare lookup is keyed by a trip date inside the valid date range.
"""

from datetime import date
from typing import List

from pydantic import Field, PositiveInt, ValidationInfo, field_validator

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

ANACORTES = 1
FRIDAY_HARBOR = 10


class TripDateInput(WsdotInput):
    TripDate: date


class TerminalMatesInput(WsdotInput):
    TripDate: date
    TerminalID: PositiveInt


class TerminalComboInput(WsdotInput):
    TripDate: date
    DepartingTerminalID: PositiveInt
    ArrivingTerminalID: PositiveInt


class FareLineItemsInput(WsdotInput):
    TripDate: date
    DepartingTerminalID: PositiveInt
    ArrivingTerminalID: PositiveInt
    RoundTrip: bool


class FareTotalsInput(WsdotInput):
    TripDate: date
    DepartingTerminalID: PositiveInt
    ArrivingTerminalID: PositiveInt
    RoundTrip: bool
    FareLineItemIDs: List[PositiveInt] = Field(min_length=1)
    Quantities: List[PositiveInt] = Field(min_length=1)

    @field_validator("Quantities")
    @classmethod
    def quantities_match_line_items(cls, quantities: List[int], info: ValidationInfo) -> List[int]:
        line_items = info.data.get("FareLineItemIDs")
        if line_items is not None and len(line_items) != len(quantities):
            raise ValueError(
                f"FareLineItemIDs and Quantities must have the same length "
                f"({len(line_items)} != {len(quantities)})"
            )
        return quantities


class FaresTerminal(WsdotOutput):
    TerminalID: int
    Description: str


class FareLineItem(WsdotOutput):
    FareLineItemID: int
    FareLineItem: str
    Category: str
    DirectionIndependent: bool
    Amount: float


class FareTotal(WsdotOutput):
    TotalType: int  # 1 depart, 2 return, 3 either, 4 total
    Description: str
    BriefDescription: str
    Amount: float


class TerminalCombo(WsdotOutput):
    DepartingDescription: str
    ArrivingDescription: str
    CollectionDescription: str


def _fare_line_items_sample():
    return {
        "TripDate": date.today(),
        "DepartingTerminalID": ANACORTES,
        "ArrivingTerminalID": FRIDAY_HARBOR,
        "RoundTrip": False,
    }


def _terminal_combo_sample():
    params = _fare_line_items_sample()
    del params["RoundTrip"]
    return params


def _fare_totals_sample():
    return dict(_fare_line_items_sample(), FareLineItemIDs=[1, 2], Quantities=[1, 1])


FARES = ApiDescriptor(
    name="wsf-fares",
    base_url=wsf_base_url("fares"),
    access_code_param=WSF_ACCESS_CODE_PARAM,
    endpoint_groups=(
        cache_flush_date_group("fares"),
        valid_date_range_group("fares"),
        EndpointGroup(
            name="terminals",
            cache_strategy=CacheStrategy.STATIC,
            endpoints=(
                EndpointDescriptor(
                    function_name="get_fares_terminals",
                    url_template="/terminals/{TripDate}",
                    input_schema=PydanticSchema(TripDateInput),
                    output_schema=PydanticSchema(List[FaresTerminal], name="List[FaresTerminal]"),
                    sample_params=today_params,
                    description="Terminals with fares on a trip date.",
                ),
                EndpointDescriptor(
                    function_name="get_fares_terminal_mates",
                    url_template="/terminalmates/{TripDate}/{TerminalID}",
                    input_schema=PydanticSchema(TerminalMatesInput),
                    output_schema=PydanticSchema(List[FaresTerminal], name="List[FaresTerminal]"),
                    sample_params=lambda: {"TripDate": date.today(), "TerminalID": ANACORTES},
                    description="Arriving terminals reachable from a departing terminal.",
                ),
                EndpointDescriptor(
                    function_name="get_terminal_combo",
                    url_template="/terminalcombo/{TripDate}/{DepartingTerminalID}/{ArrivingTerminalID}",
                    input_schema=PydanticSchema(TerminalComboInput),
                    output_schema=PydanticSchema(TerminalCombo),
                    sample_params=_terminal_combo_sample,
                    description="How fares are collected between two terminals.",
                ),
            ),
            summary="Fare terminals and terminal pairs.",
            use_cases=("Populate departure and arrival pickers",),
            update_frequency="Daily",
        ),
        EndpointGroup(
            name="fare-line-items",
            cache_strategy=CacheStrategy.STATIC,
            endpoints=(
                EndpointDescriptor(
                    function_name="get_fare_line_items_basic",
                    url_template="/farelineitemsbasic/{TripDate}/{DepartingTerminalID}/{ArrivingTerminalID}/{RoundTrip}",
                    input_schema=PydanticSchema(FareLineItemsInput),
                    output_schema=PydanticSchema(List[FareLineItem], name="List[FareLineItem]"),
                    sample_params=_fare_line_items_sample,
                    description="Most popular fare line items for a route.",
                ),
                EndpointDescriptor(
                    function_name="get_fare_line_items",
                    url_template="/farelineitems/{TripDate}/{DepartingTerminalID}/{ArrivingTerminalID}/{RoundTrip}",
                    input_schema=PydanticSchema(FareLineItemsInput),
                    output_schema=PydanticSchema(List[FareLineItem], name="List[FareLineItem]"),
                    sample_params=_fare_line_items_sample,
                    description="All fare line items for a route.",
                ),
            ),
            summary="Fare line items (passenger and vehicle fare types).",
            use_cases=("Show ticket options for a route",),
            update_frequency="Daily",
        ),
        EndpointGroup(
            name="fare-totals",
            cache_strategy=CacheStrategy.STATIC,
            endpoints=(
                EndpointDescriptor(
                    function_name="get_fare_totals",
                    url_template=(
                        "/faretotals/{TripDate}/{DepartingTerminalID}/{ArrivingTerminalID}"
                        "/{RoundTrip}/{FareLineItemIDs}/{Quantities}"
                    ),
                    input_schema=PydanticSchema(FareTotalsInput),
                    output_schema=PydanticSchema(List[FareTotal], name="List[FareTotal]"),
                    sample_params=_fare_totals_sample,
                    description="Fare totals for a set of fare line items and quantities.",
                ),
            ),
            summary="Fare calculation.",
            use_cases=("Price a booking",),
            update_frequency="Daily",
        ),
    ),
)
