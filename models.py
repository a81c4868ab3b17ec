"""
Value types for the collection engine.

All records are frozen: a `Run` is assembled once by the collector after the
scan has finished and is never touched again, so readers of the run history
can share instances freely.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Sequence, Tuple


def nowz() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


class RunStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


def derive_status(errors: Sequence[str], collected: int) -> RunStatus:
    """Terminal status of a finished scan.

    completed: no errors
    partial:   errors, but some values were collected
    failed:    errors and nothing collected
    """
    if not errors:
        return RunStatus.COMPLETED
    if collected > 0:
        return RunStatus.PARTIAL
    return RunStatus.FAILED


@dataclass(frozen=True)
class ResourceDefinition:
    id: str
    name: str
    type: str
    unit: str
    description: str
    source_url: str
    indicator: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Region:
    code: str
    name: str


@dataclass(frozen=True)
class DataPoint:
    year: int
    value: float


@dataclass(frozen=True)
class CollectedValue:
    resource_id: str
    region: str
    region_name: str
    year: int
    value: float
    unit: str
    source: str
    fetched_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Run:
    id: str
    started_at: str
    finished_at: str
    resources_requested: int
    errors: Tuple[str, ...] = ()
    values: Tuple[CollectedValue, ...] = field(default=(), repr=False)

    @property
    def values_collected(self) -> int:
        return len(self.values)

    @property
    def status(self) -> RunStatus:
        return derive_status(self.errors, self.values_collected)

    def summary(self) -> Dict[str, Any]:
        """Status view of the run; never includes the collected values."""
        return {
            "id": self.id,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "status": self.status.value,
            "resources_requested": self.resources_requested,
            "values_collected": self.values_collected,
            "error_count": len(self.errors),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "status": self.status.value,
            "resources_requested": self.resources_requested,
            "values_collected": self.values_collected,
            "errors": list(self.errors),
            "values": [v.to_dict() for v in self.values],
        }
