"""WSDOT bridge clearances: vertical clearances of bridges along a state route."""

from typing import List, Optional

from pydantic import Field

from wsdottie.apis.common import WSDOT_ACCESS_CODE_PARAM, WSDOT_TRAFFIC_ROOT
from wsdottie.cache import CacheStrategy
from wsdottie.descriptors import ApiDescriptor, EndpointDescriptor, EndpointGroup
from wsdottie.validation import PydanticSchema, WsdotDateTime, WsdotInput, WsdotOutput


class BridgeClearancesInput(WsdotInput):
    Route: str = Field(min_length=1)  # state route, e.g. "005" for I-5


class BridgeClearance(WsdotOutput):
    APILastUpdate: WsdotDateTime
    BridgeNumber: Optional[str]
    ControlEntityGuid: str
    CrossingDescription: Optional[str]
    CrossingLocationId: int
    CrossingRecordGuid: str
    InventoryDirection: Optional[str] = None
    Latitude: float = Field(ge=-90, le=90)
    LocationGuid: str
    Longitude: float = Field(ge=-180, le=180)
    RouteDate: WsdotDateTime
    SRMP: float
    SRMPAheadBackIndicator: Optional[str] = None
    StateRouteID: Optional[str]
    StateStructureId: Optional[str]
    VerticalClearanceMaximumFeetInch: Optional[str]
    VerticalClearanceMaximumInches: int
    VerticalClearanceMinimumFeetInch: Optional[str]
    VerticalClearanceMinimumInches: int


BRIDGE_CLEARANCES = ApiDescriptor(
    name="wsdot-bridge-clearances",
    base_url=f"{WSDOT_TRAFFIC_ROOT}/Bridges/ClearanceREST.svc",
    access_code_param=WSDOT_ACCESS_CODE_PARAM,
    endpoint_groups=(
        EndpointGroup(
            name="bridge-clearances",
            cache_strategy=CacheStrategy.STATIC,
            endpoints=(
                EndpointDescriptor(
                    function_name="get_bridge_clearances",
                    url_template="/GetClearancesAsJson?Route={Route}",
                    input_schema=PydanticSchema(BridgeClearancesInput),
                    output_schema=PydanticSchema(List[BridgeClearance], name="List[BridgeClearance]"),
                    sample_params={"Route": "005"},
                    description="Vertical clearances of every bridge on a state route.",
                ),
            ),
            summary="Bridge vertical clearance measurements.",
            use_cases=("Plan routes for oversized loads",),
            update_frequency="Rarely",
        ),
    ),
)
