"""
Turns endpoint descriptors into callables.

``create_fetch_function`` binds a descriptor to the fetch pipeline;
``create_hook`` binds it to the query cache with the cache config of its
strategy and, for WSF static data, to the family's cache flush signal.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Hashable, Mapping, Optional, Sequence

from wsdottie.cache import CacheConfig, resolve_cache_config, should_use_cache_flush_signal
from wsdottie.cache_flush import CacheFlushCoordinator
from wsdottie.descriptors import ApiDescriptor, EndpointDescriptor, EndpointGroup
from wsdottie.http_client import WsdotHTTPClient, get_default_client
from wsdottie.query import QueryClient, QueryKey, QueryObserver, QueryOptions


def _normalize(value: Any) -> Hashable:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return _normalize(value.value)
    if isinstance(value, Mapping):
        return tuple(sorted((str(k), _normalize(v)) for k, v in value.items()))
    if isinstance(value, (set, frozenset)):
        return tuple(sorted(_normalize(item) for item in value))
    if isinstance(value, (list, tuple)):
        return tuple(_normalize(item) for item in value)
    return value


def build_cache_key(
    api_name: str,
    group_name: str,
    function_name: str,
    params: Optional[Mapping[str, Any]] = None,
    field_order: Sequence[str] = (),
) -> QueryKey:
    """
    Build a deterministic cache key.

    Parameters are listed in ``field_order`` first and any others sorted by
    name; None values are left out so that ``{}`` and ``{"X": None}`` share a
    key. Every key starts with ``(api_name, group_name, function_name)``,
    which is the prefix used for invalidation.
    """
    params = {name: value for name, value in (params or {}).items() if value is not None}
    ordered = [name for name in field_order if name in params]
    ordered += sorted(name for name in params if name not in ordered)
    return (api_name, group_name, function_name, tuple((name, _normalize(params[name])) for name in ordered))


class FetchFunction:
    """
    Validated fetch bound to one endpoint: ``fn(params=None, validate=True) -> output``.

    Carries the endpoint's metadata for documentation and tooling.
    """

    def __init__(
        self,
        api: ApiDescriptor,
        group: EndpointGroup,
        descriptor: EndpointDescriptor,
        client: Optional[WsdotHTTPClient] = None,
    ):
        self.api = api
        self.group = group
        self.descriptor = descriptor
        self.function_name = descriptor.function_name
        self.api_name = api.name
        self.group_name = group.name
        self.cache_strategy = group.strategy_for(descriptor)
        self.sample_params = descriptor.sample_params
        self.description = descriptor.description
        self._client = client

    @property
    def client(self) -> WsdotHTTPClient:
        return self._client or get_default_client()

    def __call__(self, params: Optional[Mapping[str, Any]] = None, validate: bool = True) -> Any:
        return self.client.fetch(self.api, self.descriptor, params, validate=validate)

    def __repr__(self) -> str:
        return f"<FetchFunction {self.api_name}.{self.function_name}>"


class QueryHook:
    """
    Cached, optionally polling query over a ``FetchFunction``.

    Calling the hook returns an unmounted ``QueryObserver``; mount it inside
    a running event loop (``async with hook(params) as query: ...``).
    """

    def __init__(
        self,
        fetch_function: FetchFunction,
        query_client: QueryClient,
        coordinator: Optional[CacheFlushCoordinator] = None,
    ):
        self.fetch_function = fetch_function
        self.query_client = query_client
        self.coordinator = coordinator
        self.function_name = fetch_function.function_name
        self.api_name = fetch_function.api_name
        self.group_name = fetch_function.group_name
        self.cache_strategy = fetch_function.cache_strategy
        self.sample_params = fetch_function.sample_params
        self.config: CacheConfig = resolve_cache_config(self.cache_strategy)
        self.uses_cache_flush = (
            should_use_cache_flush_signal(self.api_name, self.cache_strategy, self.group_name)
            and fetch_function.api.cache_flush_endpoint is not None
        )
        self._field_order = tuple(fetch_function.descriptor.input_schema.field_names())

    @property
    def prefix(self) -> QueryKey:
        return (self.api_name, self.group_name, self.function_name)

    def cache_key(self, params: Optional[Mapping[str, Any]] = None) -> QueryKey:
        return build_cache_key(self.api_name, self.group_name, self.function_name, params, self._field_order)

    def __call__(
        self,
        params: Optional[Mapping[str, Any]] = None,
        options: Optional[QueryOptions] = None,
    ) -> QueryObserver:
        options = options or QueryOptions()
        dependencies = ()
        if self.uses_cache_flush and self.coordinator is not None:
            flush_query = self.coordinator.use_cache_flush_date_query(self.api_name)
            self.coordinator.use_cache_invalidation(self.prefix, flush_query)
            dependencies = (flush_query,)

        return QueryObserver(
            self.query_client,
            key_fn=self.cache_key,
            fetch_fn=self.fetch_function,
            config=options.apply(self.config),
            params=params,
            enabled=options.enabled,
            dependencies=dependencies,
        )

    def __repr__(self) -> str:
        return f"<QueryHook {self.api_name}.{self.function_name}>"


def create_fetch_function(
    api: ApiDescriptor,
    group: EndpointGroup,
    descriptor: EndpointDescriptor,
    client: Optional[WsdotHTTPClient] = None,
) -> FetchFunction:
    return FetchFunction(api, group, descriptor, client)


def create_hook(
    api: ApiDescriptor,
    group: EndpointGroup,
    descriptor: EndpointDescriptor,
    query_client: QueryClient,
    coordinator: Optional[CacheFlushCoordinator] = None,
    client: Optional[WsdotHTTPClient] = None,
) -> QueryHook:
    return QueryHook(create_fetch_function(api, group, descriptor, client), query_client, coordinator)


@dataclass
class ApiFunctions:
    """Every fetch function and hook of one API, keyed by function name."""

    api: ApiDescriptor
    fetchers: Dict[str, FetchFunction] = field(default_factory=dict)
    hooks: Dict[str, QueryHook] = field(default_factory=dict)

    def __getitem__(self, function_name: str) -> FetchFunction:
        return self.fetchers[function_name]


def create_api_functions(
    api: ApiDescriptor,
    query_client: Optional[QueryClient] = None,
    coordinator: Optional[CacheFlushCoordinator] = None,
    client: Optional[WsdotHTTPClient] = None,
) -> ApiFunctions:
    """
    Build the fetch functions of an API, plus its hooks when a query client
    is given. The coordinator defaults to one over the same query client.
    """
    functions = ApiFunctions(api)
    if query_client is not None and coordinator is None:
        coordinator = CacheFlushCoordinator(query_client, client)

    for group, descriptor in api.iter_endpoints():
        fetcher = create_fetch_function(api, group, descriptor, client)
        functions.fetchers[descriptor.function_name] = fetcher
        if query_client is not None:
            functions.hooks[descriptor.function_name] = QueryHook(fetcher, query_client, coordinator)
    return functions
