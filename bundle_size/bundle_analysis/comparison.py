import logging
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import List, Optional

import sentry_sdk

from bundle_size.bundle_analysis.models import (
    EMPTY_ROUTE_STAT,
    BundleSnapshot,
    RouteStat,
)

log = logging.getLogger(__name__)

DEFAULT_SIGNIFICANCE_THRESHOLD = 1024


class ChangeDirection(Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    UNCHANGED = "unchanged"

    @classmethod
    def from_delta(cls, size_delta: int) -> "ChangeDirection":
        if size_delta > 0:
            return cls.INCREASE
        if size_delta < 0:
            return cls.DECREASE
        return cls.UNCHANGED


class ComparisonMode(Enum):
    CURRENT_ONLY = "current-only"
    COMPARISON = "comparison"


@dataclass(frozen=True)
class RouteChange:
    """
    Info about how a route has changed between the base and the current snapshot.
    A route that only exists on one side has an empty `RouteStat` on the other.
    """

    route_name: str
    current: RouteStat
    base: RouteStat

    @property
    def size_delta(self) -> int:
        return self.current.size - self.base.size

    @property
    def direction(self) -> ChangeDirection:
        return ChangeDirection.from_delta(self.size_delta)


@dataclass(frozen=True)
class TotalChange:
    size_current: int
    size_base: int

    @property
    def size_delta(self) -> int:
        return self.size_current - self.size_base

    @property
    def direction(self) -> ChangeDirection:
        return ChangeDirection.from_delta(self.size_delta)


class BundleSnapshotComparison:
    """
    Compares the current snapshot against an optional base snapshot.

    Without a base there is nothing to compare against and the comparison is in
    `current-only` mode: `route_changes()` is empty and `total_change` is None.
    """

    def __init__(self, current: BundleSnapshot, base: Optional[BundleSnapshot]):
        self.current = current
        self.base = base

    @property
    def mode(self) -> ComparisonMode:
        if self.base is None:
            return ComparisonMode.CURRENT_ONLY
        return ComparisonMode.COMPARISON

    def route_names(self) -> List[str]:
        """
        Current routes in their order, followed by routes that only exist in base.
        """
        names = list(self.current.routes.keys())
        if self.base is not None:
            seen = set(names)
            names += [name for name in self.base.routes.keys() if name not in seen]
        return names

    @cached_property
    def _route_changes(self) -> List[RouteChange]:
        if self.base is None:
            return []
        return [
            RouteChange(
                route_name=name,
                current=self.current.routes.get(name, EMPTY_ROUTE_STAT),
                base=self.base.routes.get(name, EMPTY_ROUTE_STAT),
            )
            for name in self.route_names()
        ]

    @sentry_sdk.trace
    def route_changes(self) -> List[RouteChange]:
        return list(self._route_changes)

    @property
    def total_change(self) -> Optional[TotalChange]:
        if self.base is None:
            return None
        return TotalChange(
            size_current=self.current.total_size, size_base=self.base.total_size
        )

    @property
    def total_size_delta(self) -> Optional[int]:
        total_change = self.total_change
        return total_change.size_delta if total_change is not None else None

    def is_significant(self, threshold: int = DEFAULT_SIGNIFICANCE_THRESHOLD) -> bool:
        return is_significant(self.current, self.base, threshold)


def compare_snapshots(
    current: BundleSnapshot, base: Optional[BundleSnapshot]
) -> BundleSnapshotComparison:
    comparison = BundleSnapshotComparison(current, base)
    log.info(
        "Compared bundle snapshots",
        extra=dict(
            mode=comparison.mode.value,
            route_count=len(comparison.route_names()),
            total_size_delta=comparison.total_size_delta,
        ),
    )
    return comparison


def is_significant(
    current: BundleSnapshot,
    base: Optional[BundleSnapshot],
    threshold: int = DEFAULT_SIGNIFICANCE_THRESHOLD,
) -> bool:
    """
    Whether the change of the *total* size is worth reporting. Route level swings
    that cancel out in the total are not significant.

    With no base snapshot every change is significant.
    """
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise TypeError(f"threshold must be an int, got {type(threshold).__name__}")
    if threshold < 0:
        raise ValueError("threshold must not be negative")
    if base is None:
        return True
    return abs(current.total_size - base.total_size) > threshold
