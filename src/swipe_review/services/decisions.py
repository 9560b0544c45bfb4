"""Append-only decision log with a single undo step."""

import logging
from collections.abc import Iterable

from swipe_review.domain.decisions import Decision, DecisionKind
from swipe_review.domain.errors import InvalidDecision
from swipe_review.domain.media import Collection

_logger = logging.getLogger(__name__)


class DecisionLog:
    """Ordered decisions, one per visited index, with no gaps."""

    def __init__(self, decisions: Iterable[Decision] = ()) -> None:
        self._decisions: list[Decision] = []
        for decision in decisions:
            self.append(decision)

    def __len__(self) -> int:
        return len(self._decisions)

    def append(self, decision: Decision) -> None:
        """Append the decision for the next index."""
        expected = len(self._decisions)
        if decision.index != expected:
            raise InvalidDecision(
                f"Decision index {decision.index} does not follow log length {expected}"
            )
        self._decisions.append(decision)

    def undo_last(self) -> Decision | None:
        """Remove and return the most recent decision, if any."""
        if not self._decisions:
            return None
        return self._decisions.pop()

    def last(self) -> Decision | None:
        return self._decisions[-1] if self._decisions else None

    def count_by_kind(self, kind: DecisionKind) -> int:
        return sum(1 for decision in self._decisions if decision.kind is kind)

    @property
    def kept_count(self) -> int:
        """Kept items, favourites included."""
        return sum(1 for decision in self._decisions if decision.kind.counts_as_kept)

    def all(self) -> tuple[Decision, ...]:
        """Return a read-only snapshot of the log."""
        return tuple(self._decisions)

    def clear(self) -> None:
        self._decisions.clear()

    @classmethod
    def restore(
        cls, saved: Iterable[Decision], collection: Collection
    ) -> "DecisionLog":
        """Rebuild a log from persisted decisions validated against the collection.

        Replay stops at the first decision that is out of order, out of range, or
        whose media id no longer matches the item at its index, so the library
        may have changed between sessions without leaving gaps in the log.
        """
        log = cls()
        saved_list = list(saved)
        for decision in saved_list:
            if decision.index != len(log):
                break
            if collection.media_id_at(decision.index) != decision.media_id:
                break
            log.append(decision)
        dropped = len(saved_list) - len(log)
        if dropped:
            _logger.warning(
                "Dropped stale decisions: scope=%s kept=%s dropped=%s",
                collection.scope_id,
                len(log),
                dropped,
            )
        return log
