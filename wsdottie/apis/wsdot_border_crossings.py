"""WSDOT border crossings: wait times at the Washington / British Columbia border."""

from typing import List, Optional

from pydantic import Field

from wsdottie.apis.common import EMPTY_INPUT, WSDOT_ACCESS_CODE_PARAM, WSDOT_TRAFFIC_ROOT
from wsdottie.cache import CacheStrategy
from wsdottie.descriptors import ApiDescriptor, EndpointDescriptor, EndpointGroup
from wsdottie.validation import PydanticSchema, WsdotDateTime, WsdotOutput


class CrossingLocation(WsdotOutput):
    Description: str
    Direction: Optional[str] = None
    Latitude: float = Field(ge=-90, le=90)
    Longitude: float = Field(ge=-180, le=180)
    MilePost: float
    RoadName: str


class BorderCrossing(WsdotOutput):
    BorderCrossingLocation: Optional[CrossingLocation]
    CrossingName: str
    Time: WsdotDateTime
    WaitTime: int  # minutes; -1 when unavailable


BORDER_CROSSINGS = ApiDescriptor(
    name="wsdot-border-crossings",
    base_url=f"{WSDOT_TRAFFIC_ROOT}/BorderCrossings/BorderCrossingsREST.svc",
    access_code_param=WSDOT_ACCESS_CODE_PARAM,
    endpoint_groups=(
        EndpointGroup(
            name="border-crossing-data",
            cache_strategy=CacheStrategy.FREQUENT,
            endpoints=(
                EndpointDescriptor(
                    function_name="get_border_crossings",
                    url_template="/GetBorderCrossingsAsJson",
                    input_schema=EMPTY_INPUT,
                    output_schema=PydanticSchema(List[BorderCrossing], name="List[BorderCrossing]"),
                    description="Current wait times at every border crossing.",
                ),
            ),
            summary="Border crossing wait times.",
            use_cases=("Choose the crossing with the shortest wait",),
            update_frequency="Every few minutes",
        ),
    ),
)
