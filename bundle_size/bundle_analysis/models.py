from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping

import orjson

SNAPSHOT_FORMAT_VERSION = 1


class InvalidSnapshotError(ValueError):
    """A persisted snapshot record could not be decoded"""


def _non_negative_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidSnapshotError(f"{name} must be a non-negative integer")
    return value


@dataclass(frozen=True)
class RouteStat:
    """
    Size of a single route: bytes and number of asset files that were found on disk.
    """

    size: int = 0
    files: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"size": self.size, "files": self.files}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RouteStat":
        if not isinstance(data, Mapping):
            raise InvalidSnapshotError("route stat must be an object")
        return cls(
            size=_non_negative_int(data.get("size"), "size"),
            files=_non_negative_int(data.get("files", 0), "files"),
        )


EMPTY_ROUTE_STAT = RouteStat(size=0, files=0)


@dataclass(frozen=True)
class BundleSnapshot:
    """
    Point-in-time measurement of a build.

    `total_size` is the size of the whole static asset directory. It is measured on
    its own and is not the sum of the route sizes: chunks shared between routes are
    counted once in the total but once per route in `routes`.
    """

    routes: Mapping[str, RouteStat] = field(default_factory=dict)
    total_size: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        object.__setattr__(self, "routes", MappingProxyType(dict(self.routes)))

    @property
    def routes_size(self) -> int:
        return sum(stat.size for stat in self.routes.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": SNAPSHOT_FORMAT_VERSION,
            "routes": {route: stat.to_dict() for route, stat in self.routes.items()},
            "totalSize": self.total_size,
            "timestamp": self.timestamp.isoformat(),
        }

    def serialize(self) -> bytes:
        return orjson.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BundleSnapshot":
        if not isinstance(data, Mapping):
            raise InvalidSnapshotError("snapshot must be an object")
        routes = data.get("routes", {})
        if not isinstance(routes, Mapping):
            raise InvalidSnapshotError("routes must be an object")
        timestamp = data.get("timestamp")
        try:
            parsed_timestamp = datetime.fromisoformat(timestamp)
        except (TypeError, ValueError):
            raise InvalidSnapshotError(f"invalid timestamp: {timestamp!r}")
        if parsed_timestamp.tzinfo is None:
            parsed_timestamp = parsed_timestamp.replace(tzinfo=timezone.utc)
        return cls(
            routes={
                str(route): RouteStat.from_dict(stat) for route, stat in routes.items()
            },
            total_size=_non_negative_int(data.get("totalSize"), "totalSize"),
            timestamp=parsed_timestamp,
        )

    @classmethod
    def deserialize(cls, raw: bytes | str) -> "BundleSnapshot":
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise InvalidSnapshotError(f"snapshot is not valid JSON: {exc}")
        return cls.from_dict(data)
