"""Signals emitted while a review session runs."""

from dataclasses import dataclass
from enum import Enum

from swipe_review.domain.decisions import Decision
from swipe_review.domain.media import MB_PER_GB


class MilestoneKind(Enum):
    """Counter a milestone threshold applies to."""

    DELETE_COUNT = "delete_count"
    STORAGE_FREED_MB = "storage_freed_mb"


@dataclass(frozen=True)
class DecisionRecorded:
    """A decision was appended and the session advanced."""

    scope_id: str
    decision: Decision
    timestamp: float


@dataclass(frozen=True)
class DecisionUndone:
    """The most recent decision was removed."""

    scope_id: str
    decision: Decision


@dataclass(frozen=True)
class SessionFinished:
    """Every item in the scope has a decision."""

    scope_id: str
    kept_count: int
    deleted_count: int
    favourited_count: int


@dataclass(frozen=True)
class FireToggled:
    """The fast-streak flag changed state."""

    on_fire: bool
    streak: int


@dataclass(frozen=True)
class MilestoneCrossed:
    """A cumulative counter crossed one of its thresholds."""

    kind: MilestoneKind
    threshold: float

    @property
    def title(self) -> str:
        if self.kind is MilestoneKind.DELETE_COUNT:
            return f"{int(self.threshold)} deleted"
        if self.threshold >= MB_PER_GB:
            return f"{int(self.threshold / MB_PER_GB)} GB freed"
        return f"{int(self.threshold)} MB freed"


@dataclass(frozen=True)
class SessionSummary:
    """Velocity figures for a finished session."""

    deleted_count: int
    storage_freed_mb: float
    was_on_fire: bool
    max_fire_streak: int


SessionEvent = (
    DecisionRecorded | DecisionUndone | SessionFinished | FireToggled | MilestoneCrossed
)
