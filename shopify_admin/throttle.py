"""Per-client rate-limit tracking."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class GraphQLThrottleStatus:
    """State of the shop's GraphQL rate limit points."""

    maximum_available: float = 0.0
    currently_available: float = 0.0
    restore_rate: float = 0.0


@dataclass(frozen=True)
class GraphQLCost:
    """Cost of a GraphQL query as reported in ``extensions.cost``."""

    requested_query_cost: int = 0
    actual_query_cost: Optional[int] = None
    throttle_status: GraphQLThrottleStatus = field(default_factory=GraphQLThrottleStatus)

    @classmethod
    def from_extensions(cls, cost: Mapping[str, Any]) -> "GraphQLCost":
        status = cost.get("throttleStatus") or {}
        actual = cost.get("actualQueryCost")
        return cls(
            requested_query_cost=int(cost.get("requestedQueryCost") or 0),
            actual_query_cost=int(actual) if actual is not None else None,
            throttle_status=GraphQLThrottleStatus(
                maximum_available=float(status.get("maximumAvailable") or 0),
                currently_available=float(status.get("currentlyAvailable") or 0),
                restore_rate=float(status.get("restoreRate") or 0),
            ),
        )

    def retry_after_seconds(self) -> float:
        """Estimated wait before the query can run again.

        Uses the actual cost when Shopify reports one, the requested cost
        otherwise.
        """
        cost = (
            self.actual_query_cost
            if self.actual_query_cost is not None
            else self.requested_query_cost
        )
        diff = self.throttle_status.currently_available - cost
        if diff < 0 and self.throttle_status.restore_rate > 0:
            return -diff / self.throttle_status.restore_rate
        return 0.0


@dataclass(frozen=True)
class RateLimitInfo:
    """Snapshot of the most recent rate-limit information seen by a client."""

    request_count: int = 0
    bucket_size: int = 0
    retry_after_seconds: float = 0.0
    graphql_cost: Optional[GraphQLCost] = None


@dataclass
class RateLimitTracker:
    """Thread-safe holder of a client's :class:`RateLimitInfo`.

    Updated only from responses that were actually received. The last
    response observed wins.
    """

    _info: RateLimitInfo = field(default_factory=RateLimitInfo)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def snapshot(self) -> RateLimitInfo:
        with self.lock:
            return self._info

    def update_from_headers(self, headers: Mapping[str, str]) -> RateLimitInfo:
        """Read ``X-Shopify-Shop-Api-Call-Limit`` and ``Retry-After``.

        The call limit header has the form ``N/M``; anything else leaves the
        counters untouched. Retry-After may be fractional and defaults to 0.
        """
        changes: dict[str, Any] = {}
        parts = (headers.get("X-Shopify-Shop-Api-Call-Limit") or "").split("/")
        if len(parts) == 2:
            changes["request_count"] = _to_int(parts[0])
            changes["bucket_size"] = _to_int(parts[1])
        changes["retry_after_seconds"] = _to_float(headers.get("Retry-After"))

        with self.lock:
            self._info = replace(self._info, **changes)
            return self._info

    def update_from_graphql_cost(self, cost: GraphQLCost, retry_after: float) -> RateLimitInfo:
        with self.lock:
            self._info = replace(
                self._info, graphql_cost=cost, retry_after_seconds=retry_after
            )
            return self._info


def _to_int(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return 0


def _to_float(value: Optional[str]) -> float:
    if not value:
        return 0.0
    try:
        return float(value)
    except ValueError:
        return 0.0
