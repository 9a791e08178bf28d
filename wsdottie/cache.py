"""
Cache strategies and the cache timing they map to.

Durations are in seconds.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Union

FIVE_SECONDS = 5.0
ONE_MINUTE = 60.0
FIVE_MINUTES = 5 * ONE_MINUTE
ONE_HOUR = 60 * ONE_MINUTE
ONE_DAY = 24 * ONE_HOUR
TWO_DAYS = 2 * ONE_DAY

# Retries are bounded to a single attempt and only apply to transport errors.
MAX_RETRIES = 1

# WSF families that publish a cacheflushdate endpoint
CACHE_FLUSH_APIS = frozenset({"wsf-fares", "wsf-schedule", "wsf-terminals", "wsf-vessels"})
CACHE_FLUSH_GROUP = "cache-flush-date"
FLUSH_POLL_INTERVAL = FIVE_MINUTES


class CacheStrategy(str, Enum):
    """Volatility class of an endpoint's data."""

    STATIC = "STATIC"  # terminals, vessels, fares: changes a few times a day at most
    FREQUENT = "FREQUENT"  # wait times, alerts: changes every few minutes
    REALTIME = "REALTIME"  # vessel positions: changes every few seconds


@dataclass(frozen=True)
class CacheConfig:
    """
    Query cache timing for one strategy.

    Attributes:
        stale_time: Seconds a cached value is served without refetching
        refetch_interval: Polling interval in seconds, or None for no polling
        gc_time: Seconds an unobserved entry is kept before being dropped
        retry: Retries for transport errors (clamped to ``MAX_RETRIES``)
        retry_delay: Seconds to wait before the retry
    """

    stale_time: float
    refetch_interval: Optional[float]
    gc_time: float
    retry: int = MAX_RETRIES
    retry_delay: float = FIVE_SECONDS

    def merged(self, **overrides) -> "CacheConfig":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if "retry" in changes:
            changes["retry"] = max(0, min(MAX_RETRIES, int(changes["retry"])))
        return replace(self, **changes)


CACHE_CONFIGS: Dict[CacheStrategy, CacheConfig] = {
    CacheStrategy.STATIC: CacheConfig(stale_time=ONE_DAY, refetch_interval=None, gc_time=TWO_DAYS),
    CacheStrategy.FREQUENT: CacheConfig(stale_time=ONE_MINUTE, refetch_interval=FIVE_MINUTES, gc_time=ONE_HOUR),
    CacheStrategy.REALTIME: CacheConfig(stale_time=0.0, refetch_interval=FIVE_SECONDS, gc_time=ONE_HOUR),
}


def resolve_cache_config(strategy: Union[CacheStrategy, str]) -> CacheConfig:
    """Map a cache strategy to its query cache timing."""
    return CACHE_CONFIGS[CacheStrategy(strategy)]


def resolve_flush_cache_config() -> CacheConfig:
    """STATIC timing with the flush-date poll interval applied."""
    return resolve_cache_config(CacheStrategy.STATIC).merged(
        stale_time=FLUSH_POLL_INTERVAL,
        refetch_interval=FLUSH_POLL_INTERVAL,
    )


def should_use_cache_flush_signal(
    api_name: str,
    strategy: Union[CacheStrategy, str],
    group_name: Optional[str] = None,
) -> bool:
    """
    Decide whether an endpoint's cached data is invalidated by its family's
    cache flush date.

    FREQUENT and REALTIME data is already bounded by its own polling, and the
    flush-date endpoints themselves never depend on a flush signal.
    """
    if group_name == CACHE_FLUSH_GROUP:
        return False
    return api_name in CACHE_FLUSH_APIS and CacheStrategy(strategy) is CacheStrategy.STATIC
