"""
Typed client for WSDOT traffic and WSF ferry APIs.

Each endpoint is described once in ``wsdottie.apis`` and turned into a
validated fetch function and a cached query hook by ``wsdottie.factory``.
"""

from .apis import APIS, find_endpoint, get_api, iter_endpoints
from .cache import CacheStrategy, resolve_cache_config
from .cache_flush import CacheFlushCoordinator
from .errors import ErrorKind, WsdotApiError
from .factory import build_cache_key, create_api_functions, create_fetch_function, create_hook
from .http_client import WsdotHTTPClient
from .query import QueryClient, QueryOptions, QueryResult

__version__ = "0.1.0"
__all__ = [
    "APIS",
    "CacheFlushCoordinator",
    "CacheStrategy",
    "ErrorKind",
    "QueryClient",
    "QueryOptions",
    "QueryResult",
    "WsdotApiError",
    "WsdotHTTPClient",
    "build_cache_key",
    "create_api_functions",
    "create_fetch_function",
    "create_hook",
    "find_endpoint",
    "get_api",
    "iter_endpoints",
    "resolve_cache_config",
]
