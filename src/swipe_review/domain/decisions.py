"""Domain models for review decisions."""

from dataclasses import dataclass
from enum import Enum

from swipe_review.domain.media import MediaRef


class DecisionKind(Enum):
    """Verdict recorded for a reviewed item."""

    KEPT = "kept"
    DELETED = "deleted"
    FAVOURITED = "favourited"

    @property
    def counts_as_kept(self) -> bool:
        """Favourites are kept items with an extra flag."""
        return self in {DecisionKind.KEPT, DecisionKind.FAVOURITED}


@dataclass(frozen=True)
class Decision:
    """Decision recorded for one item at one traversal index."""

    index: int
    media_id: str
    kind: DecisionKind


@dataclass(frozen=True)
class DeletionBatch:
    """Items selected for deletion once a scope has been fully reviewed."""

    scope_id: str
    items: tuple[MediaRef, ...]

    @property
    def media_ids(self) -> list[str]:
        return [item.id for item in self.items]

    @property
    def estimated_size_bytes(self) -> int:
        return sum(item.estimated_size_bytes for item in self.items)

    def __len__(self) -> int:
        return len(self.items)


def decision_to_payload(decision: Decision) -> dict[str, object]:
    """Serialize a decision for persistence."""
    return {
        "index": decision.index,
        "media_id": decision.media_id,
        "kind": decision.kind.value,
    }


def decision_from_payload(payload: dict[str, object]) -> Decision | None:
    """Parse a persisted decision, returning None for malformed rows."""
    index = payload.get("index")
    media_id = payload.get("media_id")
    raw_kind = payload.get("kind")
    if not isinstance(index, int) or isinstance(index, bool) or index < 0:
        return None
    if not isinstance(media_id, str) or not media_id:
        return None
    try:
        kind = DecisionKind(raw_kind)
    except ValueError:
        return None
    return Decision(index=index, media_id=media_id, kind=kind)
