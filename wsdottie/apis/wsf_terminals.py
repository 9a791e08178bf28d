"""WSF terminals: terminal basics and current sailing space."""

from typing import List, Optional

from pydantic import PositiveInt

from wsdottie.apis.common import EMPTY_INPUT, WSF_ACCESS_CODE_PARAM, cache_flush_date_group, wsf_base_url
from wsdottie.cache import CacheStrategy
from wsdottie.descriptors import ApiDescriptor, EndpointDescriptor, EndpointGroup
from wsdottie.validation import PydanticSchema, WsdotDateTime, WsdotInput, WsdotOutput


class TerminalInput(WsdotInput):
    TerminalID: PositiveInt


class TerminalBasics(WsdotOutput):
    TerminalID: int
    TerminalSubjectID: int
    RegionID: int
    TerminalName: str
    TerminalAbbrev: str
    SortSeq: int
    OverheadPassengerLoading: bool
    Elevator: bool
    WaitingRoom: bool
    FoodService: bool
    Restroom: bool


class ArrivalSpace(WsdotOutput):
    TerminalID: int
    TerminalName: str
    VesselID: int
    VesselName: str
    DisplayReservableSpace: bool
    ReservableSpaceCount: Optional[int] = None
    DisplayDriveUpSpace: bool
    DriveUpSpaceCount: int
    MaxSpaceCount: int
    ArrivalTerminalIDs: List[int]


class DepartingSpace(WsdotOutput):
    Departure: WsdotDateTime
    IsCancelled: bool
    VesselID: int
    VesselName: str
    MaxSpaceCount: int
    SpaceForArrivalTerminals: List[ArrivalSpace]


class TerminalSailingSpace(WsdotOutput):
    TerminalID: int
    TerminalSubjectID: int
    RegionID: int
    TerminalName: str
    TerminalAbbrev: str
    SortSeq: int
    DepartingSpaces: List[DepartingSpace]
    IsNoFareCollected: Optional[bool] = None
    NoFareCollectedMsg: Optional[str] = None


TERMINALS = ApiDescriptor(
    name="wsf-terminals",
    base_url=wsf_base_url("terminals"),
    access_code_param=WSF_ACCESS_CODE_PARAM,
    endpoint_groups=(
        cache_flush_date_group("terminals"),
        EndpointGroup(
            name="terminal-basics",
            cache_strategy=CacheStrategy.STATIC,
            endpoints=(
                EndpointDescriptor(
                    function_name="get_terminal_basics",
                    url_template="/terminalbasics",
                    input_schema=EMPTY_INPUT,
                    output_schema=PydanticSchema(List[TerminalBasics], name="List[TerminalBasics]"),
                    description="Amenities and identifiers of every terminal.",
                ),
                EndpointDescriptor(
                    function_name="get_terminal_basics_by_terminal_id",
                    url_template="/terminalbasics/{TerminalID}",
                    input_schema=PydanticSchema(TerminalInput),
                    output_schema=PydanticSchema(TerminalBasics),
                    sample_params={"TerminalID": 1},
                    description="Amenities and identifiers of one terminal.",
                ),
            ),
            summary="Terminal identifiers and amenities.",
            use_cases=("List terminals", "Show amenities"),
            update_frequency="Rarely",
        ),
        EndpointGroup(
            name="terminal-sailing-space",
            cache_strategy=CacheStrategy.FREQUENT,
            endpoints=(
                EndpointDescriptor(
                    function_name="get_terminal_sailing_space",
                    url_template="/terminalsailingspace",
                    input_schema=EMPTY_INPUT,
                    output_schema=PydanticSchema(List[TerminalSailingSpace], name="List[TerminalSailingSpace]"),
                    description="Remaining vehicle space on upcoming departures from every terminal.",
                ),
                EndpointDescriptor(
                    function_name="get_terminal_sailing_space_by_terminal_id",
                    url_template="/terminalsailingspace/{TerminalID}",
                    input_schema=PydanticSchema(TerminalInput),
                    output_schema=PydanticSchema(TerminalSailingSpace),
                    sample_params={"TerminalID": 1},
                    description="Remaining vehicle space on upcoming departures from one terminal.",
                ),
            ),
            summary="Drive-up and reservable vehicle space.",
            use_cases=("Decide whether to drive up without a reservation",),
            update_frequency="Every few minutes",
        ),
    ),
)
