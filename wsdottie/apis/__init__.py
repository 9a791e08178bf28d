"""
Registry of the API descriptors shipped with wsdottie.
"""

from typing import Iterable, Iterator, Optional, Tuple

from wsdottie.apis.wsdot_border_crossings import BORDER_CROSSINGS
from wsdottie.apis.wsdot_bridge_clearances import BRIDGE_CLEARANCES
from wsdottie.apis.wsf_fares import FARES
from wsdottie.apis.wsf_schedule import SCHEDULE
from wsdottie.apis.wsf_terminals import TERMINALS
from wsdottie.apis.wsf_vessels import VESSELS
from wsdottie.descriptors import ApiDescriptor, EndpointDescriptor, EndpointGroup

APIS: Tuple[ApiDescriptor, ...] = (
    BRIDGE_CLEARANCES,
    BORDER_CROSSINGS,
    FARES,
    TERMINALS,
    VESSELS,
    SCHEDULE,
)

Endpoint = Tuple[ApiDescriptor, EndpointGroup, EndpointDescriptor]


def get_api(name: str) -> ApiDescriptor:
    for api in APIS:
        if api.name == name:
            return api
    raise KeyError(f"Unknown API: {name} (known: {', '.join(api.name for api in APIS)})")


def iter_endpoints(apis: Iterable[ApiDescriptor] = APIS) -> Iterator[Endpoint]:
    """Every (api, group, descriptor) triple in declaration order."""
    for api in apis:
        for group, descriptor in api.iter_endpoints():
            yield api, group, descriptor


def find_endpoint(function_name: str, api_name: Optional[str] = None) -> Endpoint:
    """
    Look an endpoint up by function name.

    Function names are unique per API only, so ``api_name`` is required when
    several APIs share one (e.g. ``get_cache_flush_date``).

    Raises:
        KeyError: If no endpoint, or more than one, matches
    """
    apis = [get_api(api_name)] if api_name else APIS
    matches = [endpoint for endpoint in iter_endpoints(apis) if endpoint[2].function_name == function_name]
    if not matches:
        raise KeyError(f"Unknown endpoint: {function_name}")
    if len(matches) > 1:
        names = ", ".join(api.name for api, _, _ in matches)
        raise KeyError(f"{function_name} exists in several APIs ({names}); pass an API name")
    return matches[0]
