"""
Cache invalidation driven by the WSF cache flush date.

Each WSF family publishes a "cacheflushdate" endpoint whose value changes
whenever the family's static data changes upstream. One shared observer per
family polls it; when the value moves from one date to another, every
registered STATIC query of that family is invalidated once.
"""

from datetime import datetime
from typing import Dict, Iterable, Optional

from loguru import logger

from wsdottie.apis import APIS
from wsdottie.cache import CACHE_FLUSH_GROUP, resolve_flush_cache_config
from wsdottie.descriptors import ApiDescriptor
from wsdottie.http_client import WsdotHTTPClient, get_default_client
from wsdottie.query import QueryClient, QueryKey, QueryObserver, QueryResult


class FlushStateCell:
    """Last observed flush date of one family plus the prefixes it invalidates."""

    def __init__(self):
        self.last_value: Optional[datetime] = None
        self.prefixes: Dict[QueryKey, None] = {}

    def register(self, prefix: QueryKey):
        self.prefixes.setdefault(tuple(prefix), None)

    def observe(self, value: Optional[datetime]) -> bool:
        """
        Record a new observation.

        Returns:
            True when a previous value existed and differs from ``value``.
            None values carry no flush information and leave the cell as is.
        """
        if value is None:
            return False
        previous, self.last_value = self.last_value, value
        return previous is not None and previous != value


class CacheFlushCoordinator:
    """
    Owns the per-family flush state and flush-date observers.

    Args:
        query_client: Cache whose entries get invalidated
        client: HTTP client for flush-date requests (shared default when None)
        apis: API descriptors to look families up in (registry when None)
    """

    def __init__(
        self,
        query_client: QueryClient,
        client: Optional[WsdotHTTPClient] = None,
        apis: Optional[Iterable[ApiDescriptor]] = None,
    ):
        self.query_client = query_client
        self._client = client
        self._apis = {api.name: api for api in (APIS if apis is None else apis)}
        self._cells: Dict[str, FlushStateCell] = {}
        self._observers: Dict[str, QueryObserver] = {}

    def cell(self, api_name: str) -> FlushStateCell:
        if api_name not in self._cells:
            self._cells[api_name] = FlushStateCell()
        return self._cells[api_name]

    def use_cache_flush_date_query(self, api_name: str) -> QueryObserver:
        """
        Shared observer of a family's flush-date endpoint.

        Raises:
            KeyError: If the API is unknown or publishes no flush date
        """
        if api_name in self._observers:
            return self._observers[api_name]

        api = self._apis[api_name]
        flush = api.cache_flush_endpoint
        if flush is None:
            raise KeyError(f"{api_name} has no {CACHE_FLUSH_GROUP} endpoint")
        _group, descriptor = flush

        def fetch(params):
            client = self._client or get_default_client()
            return client.fetch(api, descriptor, params)

        key = (api.name, CACHE_FLUSH_GROUP, descriptor.function_name)
        observer = QueryObserver(
            self.query_client,
            key_fn=lambda params: key,
            fetch_fn=fetch,
            config=resolve_flush_cache_config(),
        )
        observer.subscribe(lambda result: self._on_flush_result(api_name, result))
        self._observers[api_name] = observer
        return observer

    def use_cache_invalidation(self, prefix: QueryKey, flush_query: QueryObserver):
        """Invalidate ``prefix`` whenever ``flush_query``'s family flush date changes."""
        api_name = flush_query.key[0]
        self.cell(api_name).register(prefix)

    def _on_flush_result(self, api_name: str, result: QueryResult):
        if not result.is_success:
            return
        cell = self.cell(api_name)
        previous = cell.last_value
        if cell.observe(result.data):
            logger.info(f"{api_name} cache flush date changed from {previous} to {result.data}, invalidating")
            for prefix in cell.prefixes:
                self.query_client.invalidate_queries(prefix)
