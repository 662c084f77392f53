from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class DispatchStatus(str, Enum):
    REGISTERED = "registered"
    ERROR = "error"


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"window start {self.start.isoformat()} is after end {self.end.isoformat()}")

    @property
    def label(self) -> str:
        return self.start.date().isoformat()


@dataclass(frozen=True)
class CandidateRecord:
    actor_id: int
    item_id: str
    diagnosis: str | None = None


@dataclass(frozen=True)
class WorkItem:
    actor_id: int
    item_id: str


@dataclass(frozen=True)
class DispatchOutcome:
    sequence_no: int
    actor_id: int
    item_id: str
    status: DispatchStatus


@dataclass(frozen=True)
class RunReport:
    window: TimeWindow
    outcomes: tuple[DispatchOutcome, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def registered(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is DispatchStatus.REGISTERED)

    @property
    def errors(self) -> int:
        return self.total - self.registered

    @property
    def is_empty(self) -> bool:
        return not self.outcomes

    @property
    def has_errors(self) -> bool:
        return self.errors > 0

