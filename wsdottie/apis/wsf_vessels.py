"""WSF vessels: vessel basics and live vessel positions."""

from typing import List, Optional

from pydantic import Field, PositiveInt

from wsdottie.apis.common import EMPTY_INPUT, WSF_ACCESS_CODE_PARAM, cache_flush_date_group, wsf_base_url
from wsdottie.cache import CacheStrategy
from wsdottie.descriptors import ApiDescriptor, EndpointDescriptor, EndpointGroup
from wsdottie.validation import NullableWsdotDateTime, PydanticSchema, WsdotDateTime, WsdotInput, WsdotOutput


class VesselInput(WsdotInput):
    VesselID: PositiveInt


class VesselClass(WsdotOutput):
    ClassID: int
    ClassSubjectID: int
    ClassName: str
    SortSeq: int
    DrawingImg: str
    SilhouetteImg: str
    PublicDisplayName: str


class VesselBasics(WsdotOutput):
    VesselID: int
    VesselSubjectID: int
    VesselName: str
    VesselAbbrev: str
    Class: VesselClass
    Status: int  # 1 in service, 2 maintenance, 3 out of service
    OwnedByWSF: bool


class VesselLocation(WsdotOutput):
    VesselID: PositiveInt
    VesselName: str = Field(min_length=1)
    Mmsi: int
    DepartingTerminalID: int
    DepartingTerminalName: str
    DepartingTerminalAbbrev: str
    ArrivingTerminalID: Optional[int]
    ArrivingTerminalName: Optional[str]
    ArrivingTerminalAbbrev: Optional[str]
    Latitude: float = Field(ge=-90, le=90)
    Longitude: float = Field(ge=-180, le=180)
    Speed: float = Field(ge=0)
    Heading: float = Field(ge=0, le=359)
    InService: bool
    AtDock: bool
    LeftDock: NullableWsdotDateTime
    Eta: NullableWsdotDateTime
    EtaBasis: Optional[str]
    ScheduledDeparture: NullableWsdotDateTime
    OpRouteAbbrev: Optional[List[str]]
    TimeStamp: WsdotDateTime


VESSELS = ApiDescriptor(
    name="wsf-vessels",
    base_url=wsf_base_url("vessels"),
    access_code_param=WSF_ACCESS_CODE_PARAM,
    endpoint_groups=(
        cache_flush_date_group("vessels"),
        EndpointGroup(
            name="vessel-basics",
            cache_strategy=CacheStrategy.STATIC,
            endpoints=(
                EndpointDescriptor(
                    function_name="get_vessel_basics",
                    url_template="/vesselbasics",
                    input_schema=EMPTY_INPUT,
                    output_schema=PydanticSchema(List[VesselBasics], name="List[VesselBasics]"),
                    description="Name, class and status of every vessel.",
                ),
                EndpointDescriptor(
                    function_name="get_vessel_basics_by_vessel_id",
                    url_template="/vesselbasics/{VesselID}",
                    input_schema=PydanticSchema(VesselInput),
                    output_schema=PydanticSchema(VesselBasics),
                    sample_params={"VesselID": 1},
                    description="Name, class and status of one vessel.",
                ),
            ),
            summary="Fleet information.",
            use_cases=("Label vessels on a map",),
            update_frequency="Rarely",
        ),
        EndpointGroup(
            name="vessel-locations",
            cache_strategy=CacheStrategy.REALTIME,
            endpoints=(
                EndpointDescriptor(
                    function_name="get_vessel_locations",
                    url_template="/vessellocations",
                    input_schema=EMPTY_INPUT,
                    output_schema=PydanticSchema(List[VesselLocation], name="List[VesselLocation]"),
                    description="Current position, speed and ETA of every vessel.",
                ),
                EndpointDescriptor(
                    function_name="get_vessel_locations_by_vessel_id",
                    url_template="/vessellocations/{VesselID}",
                    input_schema=PydanticSchema(VesselInput),
                    output_schema=PydanticSchema(VesselLocation),
                    sample_params={"VesselID": 1},
                    description="Current position, speed and ETA of one vessel.",
                ),
            ),
            summary="Live vessel tracking.",
            use_cases=("Track ferries on a map", "Show arrival estimates"),
            update_frequency="Every few seconds",
        ),
    ),
)
