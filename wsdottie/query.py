"""
Reactive query cache.

``QueryClient`` owns one ``QueryEntry`` per cache key and guarantees that
concurrent fetches of the same key share a single in-flight task.
``QueryObserver`` is the per-consumer view: it mounts onto a key, fetches
when the cached value is stale, polls on an interval, refetches after
invalidation and discards results that arrive after it unmounted or moved
to other parameters.

Fetch functions are synchronous (``requests``) and run through
``asyncio.to_thread``; every cache mutation happens on the event loop.
"""

import asyncio
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Sequence, Set, Tuple

from loguru import logger

from wsdottie.cache import CacheConfig
from wsdottie.errors import WsdotApiError

QueryKey = Tuple[Hashable, ...]


class QueryStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class QueryResult:
    """Snapshot of a query as seen by an observer."""

    data: Any = None
    error: Optional[Exception] = None
    status: QueryStatus = QueryStatus.PENDING
    is_loading: bool = False
    is_fetching: bool = False
    updated_at: Optional[datetime] = None

    @property
    def is_success(self) -> bool:
        return self.status is QueryStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status is QueryStatus.ERROR


@dataclass(frozen=True)
class QueryOptions:
    """Per-hook overrides of the strategy's cache config; None keeps the default."""

    enabled: bool = True
    stale_time: Optional[float] = None
    refetch_interval: Optional[float] = None
    gc_time: Optional[float] = None
    retry: Optional[int] = None
    retry_delay: Optional[float] = None

    def apply(self, config: CacheConfig) -> CacheConfig:
        return config.merged(
            stale_time=self.stale_time,
            refetch_interval=self.refetch_interval,
            gc_time=self.gc_time,
            retry=self.retry,
            retry_delay=self.retry_delay,
        )


class QueryEntry:
    """Cached state for one key."""

    def __init__(self, key: QueryKey):
        self.key = key
        self.data: Any = None
        self.error: Optional[Exception] = None
        self.updated_at: Optional[float] = None
        self.updated_wall: Optional[datetime] = None
        self.invalidated = False
        self.invalidations = 0
        self.task: Optional[asyncio.Task] = None
        self.task_invalidations = 0
        self.observers: Set["QueryObserver"] = set()
        self.gc_handle: Optional[asyncio.TimerHandle] = None

    def is_stale(self, stale_time: float, now: float) -> bool:
        if self.invalidated or self.updated_at is None or self.error is not None:
            return True
        return now - self.updated_at >= stale_time


def _consume_exception(task: asyncio.Task):
    # Late callers may have been cancelled; mark the outcome as retrieved.
    if not task.cancelled():
        task.exception()


class QueryClient:
    """
    Keyed cache of fetch results.

    Args:
        clock: Monotonic clock used for staleness checks
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[QueryKey, QueryEntry] = {}

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def keys(self) -> List[QueryKey]:
        return list(self._entries)

    def peek(self, key: QueryKey) -> Optional[QueryEntry]:
        return self._entries.get(key)

    def _entry(self, key: QueryKey) -> QueryEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = QueryEntry(key)
        return entry

    def _notify(self, entry: QueryEntry):
        for observer in list(entry.observers):
            observer._on_entry_update()

    def get_query_data(self, key: QueryKey) -> Any:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def set_query_data(self, key: QueryKey, data: Any):
        entry = self._entry(key)
        entry.data = data
        entry.error = None
        entry.updated_at = self._clock()
        entry.updated_wall = datetime.now(timezone.utc)
        entry.invalidated = False
        self._notify(entry)

    def get_query_state(self, key: QueryKey) -> QueryResult:
        entry = self._entries.get(key)
        if entry is None:
            return QueryResult()

        is_fetching = entry.task is not None
        if entry.error is not None:
            return QueryResult(error=entry.error, status=QueryStatus.ERROR, is_fetching=is_fetching)
        if entry.updated_at is not None:
            return QueryResult(
                data=entry.data,
                status=QueryStatus.SUCCESS,
                is_fetching=is_fetching,
                updated_at=entry.updated_wall,
            )
        return QueryResult(is_loading=is_fetching, is_fetching=is_fetching)

    async def fetch_query(
        self,
        key: QueryKey,
        fetch_fn: Callable[[], Any],
        config: CacheConfig,
        force: bool = False,
    ) -> Any:
        """
        Return fresh cached data or fetch it.

        A fetch already in flight for ``key`` is joined instead of starting a
        second one, unless the entry was invalidated after it started; then
        it is left to finish and a new fetch follows. Cancelling the caller
        does not cancel the shared fetch.

        Raises:
            WsdotApiError: The fetch failed (after at most one retry for
                           transport errors)
        """
        entry = self._entry(key)
        if not force and not entry.is_stale(config.stale_time, self._clock()):
            logger.debug(f"Cache hit for {key}")
            return entry.data

        while entry.task is not None and entry.task_invalidations != entry.invalidations:
            # the running fetch started before the last invalidation
            logger.debug(f"Waiting for outdated fetch of {key} before refetching")
            await asyncio.wait({entry.task})

        if entry.task is None:
            entry.task_invalidations = entry.invalidations
            entry.task = asyncio.get_running_loop().create_task(self._run(entry, fetch_fn, config))
            entry.task.add_done_callback(_consume_exception)
            self._notify(entry)
        else:
            logger.debug(f"Joining in-flight fetch for {key}")
        return await asyncio.shield(entry.task)

    async def _run(self, entry: QueryEntry, fetch_fn: Callable[[], Any], config: CacheConfig) -> Any:
        attempt = 0
        try:
            while True:
                try:
                    data = await asyncio.to_thread(fetch_fn)
                except Exception as e:
                    if isinstance(e, WsdotApiError) and e.retryable and attempt < config.retry:
                        attempt += 1
                        logger.warning(f"Retrying {entry.key} in {config.retry_delay:.1f}s after: {e}")
                        await asyncio.sleep(config.retry_delay)
                        continue
                    entry.error = e
                    raise
                entry.data = data
                entry.error = None
                entry.updated_at = self._clock()
                entry.updated_wall = datetime.now(timezone.utc)
                entry.invalidated = entry.task_invalidations != entry.invalidations
                return data
        finally:
            entry.task = None
            self._notify(entry)

    def invalidate_queries(self, prefix: QueryKey) -> int:
        """
        Mark every entry whose key starts with ``prefix`` as stale and let
        mounted observers refetch it.

        Returns:
            Number of entries invalidated
        """
        prefix = tuple(prefix)
        matched = [entry for key, entry in self._entries.items() if key[: len(prefix)] == prefix]
        for entry in matched:
            entry.invalidated = True
            entry.invalidations += 1
            for observer in list(entry.observers):
                observer._on_invalidated()
        logger.debug(f"Invalidated {len(matched)} queries under {prefix}")
        return len(matched)

    def remove_queries(self, prefix: QueryKey = ()) -> int:
        prefix = tuple(prefix)
        doomed = [key for key, entry in self._entries.items() if key[: len(prefix)] == prefix and not entry.observers]
        for key in doomed:
            self._drop(key)
        return len(doomed)

    def _drop(self, key: QueryKey):
        entry = self._entries.pop(key, None)
        if entry and entry.gc_handle:
            entry.gc_handle.cancel()

    def _attach(self, key: QueryKey, observer: "QueryObserver") -> QueryEntry:
        entry = self._entry(key)
        entry.observers.add(observer)
        if entry.gc_handle:
            entry.gc_handle.cancel()
            entry.gc_handle = None
        return entry

    def _detach(self, key: QueryKey, observer: "QueryObserver", gc_time: float):
        entry = self._entries.get(key)
        if entry is None:
            return
        entry.observers.discard(observer)
        self._schedule_collect(key, gc_time)

    def _schedule_collect(self, key: QueryKey, gc_time: float):
        entry = self._entries.get(key)
        if entry is None or entry.observers:
            return
        if entry.gc_handle:
            entry.gc_handle.cancel()
        entry.gc_handle = asyncio.get_running_loop().call_later(gc_time, self._collect, key, gc_time)

    def _collect(self, key: QueryKey, gc_time: float):
        entry = self._entries.get(key)
        if entry is None or entry.observers:
            return
        entry.gc_handle = None
        if entry.task is not None:
            # still fetching; start the gc_time countdown again once it is done
            entry.task.add_done_callback(lambda _task: self._schedule_collect(key, gc_time))
            return
        logger.debug(f"Dropping unobserved query {key}")
        del self._entries[key]


class QueryObserver:
    """
    One consumer's subscription to a query.

    Mount it inside a running event loop (``async with observer:`` or
    ``mount()``/``unmount()``). Mounting is reference counted so that shared
    observers, such as a family's flush-date query, poll once no matter how
    many hooks depend on them.

    Args:
        client: Query cache
        key_fn: Maps parameters to a cache key
        fetch_fn: Synchronous fetch taking the parameters
        config: Resolved cache config
        params: Initial parameters
        enabled: When False the observer never fetches on its own
        dependencies: Observers mounted and unmounted together with this one
    """

    def __init__(
        self,
        client: QueryClient,
        key_fn: Callable[[Optional[Mapping[str, Any]]], QueryKey],
        fetch_fn: Callable[[Optional[Mapping[str, Any]]], Any],
        config: CacheConfig,
        params: Optional[Mapping[str, Any]] = None,
        enabled: bool = True,
        dependencies: Sequence["QueryObserver"] = (),
    ):
        self._client = client
        self._key_fn = key_fn
        self._fetch_fn = fetch_fn
        self.config = config
        self.enabled = enabled
        self._params = params
        self._key = key_fn(params)
        self._dependencies = tuple(dependencies)
        self._mounts = 0
        self._generation = 0
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()
        self._waiting: Set[asyncio.Task] = set()
        self._listeners: List[Callable[[QueryResult], None]] = []

    @property
    def key(self) -> QueryKey:
        return self._key

    @property
    def params(self) -> Optional[Mapping[str, Any]]:
        return self._params

    @property
    def is_mounted(self) -> bool:
        return self._mounts > 0

    @property
    def result(self) -> QueryResult:
        result = self._client.get_query_state(self._key)
        if self._waiting and not result.is_fetching:
            # fetch scheduled but not started yet
            loading = result.status is QueryStatus.PENDING
            result = replace(result, is_fetching=True, is_loading=loading)
        return result

    def subscribe(self, listener: Callable[[QueryResult], None]) -> Callable[[], None]:
        """Call ``listener`` with the new result on every change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def mount(self):
        self._mounts += 1
        if self._mounts > 1:
            return
        self._loop = asyncio.get_running_loop()
        for dependency in self._dependencies:
            dependency.mount()
        self._client._attach(self._key, self)
        if self.enabled:
            self._start()

    def unmount(self):
        if not self._mounts:
            return
        self._mounts -= 1
        if self._mounts:
            return
        self._generation += 1
        self._stop()
        self._client._detach(self._key, self, self.config.gc_time)
        for dependency in self._dependencies:
            dependency.unmount()

    async def __aenter__(self) -> "QueryObserver":
        self.mount()
        return self

    async def __aexit__(self, *exc):
        self.unmount()

    def set_params(self, params: Optional[Mapping[str, Any]]):
        """Switch to new parameters; results still in flight for the old ones are discarded."""
        self._params = params
        new_key = self._key_fn(params)
        if new_key == self._key:
            return
        self._generation += 1
        if not self.is_mounted:
            self._key = new_key
            return
        self._stop()
        self._client._detach(self._key, self, self.config.gc_time)
        self._key = new_key
        self._client._attach(self._key, self)
        if self.enabled:
            self._start()
        self._emit()

    async def refetch(self) -> QueryResult:
        """Run the full pipeline again regardless of staleness."""
        if not self.is_mounted:
            raise RuntimeError("Cannot refetch an unmounted query observer")
        return await self._schedule_fetch(force=True)

    async def wait(self) -> QueryResult:
        """Wait for this observer's pending fetches and return the current result."""
        if self._pending:
            await asyncio.wait(list(self._pending))
        return self.result

    def _start(self):
        entry = self._client.peek(self._key)
        if entry is None or entry.is_stale(self.config.stale_time, self._client._clock()):
            self._schedule_fetch(force=False)
        if self.config.refetch_interval:
            self._poll_task = self._loop.create_task(self._poll(self.config.refetch_interval))

    def _stop(self):
        if self._poll_task:
            self._poll_task.cancel()
            self._poll_task = None
        for task in list(self._pending):
            task.cancel()

    def _schedule_fetch(self, force: bool) -> asyncio.Task:
        task = self._loop.create_task(self._fetch(self._generation, self._key, self._params, force))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        self._waiting.add(task)
        task.add_done_callback(self._waiting.discard)
        return task

    async def _fetch(self, generation: int, key: QueryKey, params, force: bool) -> QueryResult:
        self._waiting.discard(asyncio.current_task())
        try:
            await self._client.fetch_query(key, partial(self._fetch_fn, params), self.config, force=force)
        except Exception as e:
            # recorded on the entry; surfaced through ``result.error``
            logger.debug(f"Query {key} failed: {e}")
        if generation != self._generation:
            logger.debug(f"Discarding late result for {key}")
        return self.result

    async def _poll(self, interval: float):
        while True:
            await asyncio.sleep(interval)
            await self._fetch(self._generation, self._key, self._params, force=True)

    def _emit(self):
        result = self.result
        for listener in list(self._listeners):
            listener(result)

    def _on_entry_update(self):
        self._emit()

    def _on_invalidated(self):
        if self.is_mounted and self.enabled:
            self._schedule_fetch(force=True)
