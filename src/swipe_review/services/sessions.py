"""Session state machine for swipe-based media review."""

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from swipe_review.domain.decisions import Decision, DecisionKind, DeletionBatch
from swipe_review.domain.errors import (
    DeletionExecutionFailed,
    NoCurrentItem,
    NothingToUndo,
    SessionNotFinished,
)
from swipe_review.domain.events import (
    DecisionRecorded,
    DecisionUndone,
    SessionEvent,
    SessionFinished,
)
from swipe_review.domain.media import Collection, MediaRef
from swipe_review.services.cache import PrefetchCache
from swipe_review.services.decisions import DecisionLog
from swipe_review.services.events import EventBus
from swipe_review.services.persistence import PersistenceGateway, ProgressWriter
from swipe_review.services.velocity import VelocityTracker

_logger = logging.getLogger(__name__)


class DeletionGateway(Protocol):
    """Performs the bulk removal of a reviewed batch."""

    def delete_media(self, batch: DeletionBatch) -> None:
        """Remove every item in the batch, or raise and remove none."""


class SessionStatus(Enum):
    """Externally visible session states."""

    LOADING = "loading"
    ACTIVE = "active"
    FINISHED = "finished"
    EMPTY = "empty"


@dataclass
class SessionEngine:
    """Traversal, decisions, prefetching and persistence for one scope.

    Every public method is a synchronous state transition. Cache warming and
    persistence writes run as background tasks on the running event loop, so
    the engine must be driven from inside one.
    """

    scope_id: str
    cache: PrefetchCache
    gateway: PersistenceGateway
    tracker: VelocityTracker | None = None
    clock: Callable[[], float] = time.monotonic
    status: SessionStatus = field(default=SessionStatus.LOADING, init=False)
    current_index: int = field(default=0, init=False)
    collection: Collection | None = field(default=None, init=False)
    log: DecisionLog = field(default_factory=DecisionLog, init=False)
    writer: ProgressWriter = field(init=False)
    _bus: EventBus[SessionEvent] = field(
        default_factory=EventBus, init=False, repr=False
    )
    _tasks: set[asyncio.Task[None]] = field(
        default_factory=set, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self.writer = ProgressWriter(self.gateway)
        if self.tracker is not None:
            self.tracker.subscribe(self._bus.publish)

    def subscribe(self, listener: Callable[[SessionEvent], None]) -> Callable[[], None]:
        """Register a listener for session events and velocity signals."""
        return self._bus.subscribe(listener)

    def start(
        self,
        collection: Collection,
        resume_from: int | None = None,
        pending_decisions: list[Decision] | None = None,
    ) -> None:
        """Begin a session, resuming from persisted progress when it is usable."""
        self.cache.clear()
        self.collection = collection
        self.log = DecisionLog()
        self.current_index = 0
        if self.tracker is not None:
            self.tracker.reset()

        total = len(collection)
        if total == 0:
            self.status = SessionStatus.EMPTY
            _logger.info("Session empty: scope=%s", self.scope_id)
            return

        if resume_from is not None and 0 <= resume_from < total:
            restored = DecisionLog.restore(pending_decisions or [], collection)
            while len(restored) > resume_from:
                restored.undo_last()
            self.log = restored
            self.current_index = len(restored)
        elif resume_from == total and pending_decisions:
            restored = DecisionLog.restore(pending_decisions, collection)
            if len(restored) == total:
                self.log = restored
                self.current_index = total

        if self.current_index >= total:
            self.status = SessionStatus.FINISHED
        else:
            self.status = SessionStatus.ACTIVE
            self._spawn(self.cache.ensure_window(self.current_index, collection))
        _logger.info(
            "Session started: scope=%s index=%s total=%s",
            self.scope_id,
            self.current_index,
            total,
        )

    def current_item(self) -> MediaRef | None:
        """Return the item awaiting a decision, or None at the end."""
        if self.collection is None or self.current_index >= len(self.collection):
            return None
        return self.collection[self.current_index]

    def current_handle(self) -> object | None:
        """Return the rendered handle for the current item if it is cached."""
        if self.current_item() is None:
            return None
        return self.cache.get(self.current_index)

    @property
    def total_count(self) -> int:
        return len(self.collection) if self.collection is not None else 0

    @property
    def can_undo(self) -> bool:
        return self.current_index > 0 and len(self.log) > 0

    @property
    def kept_count(self) -> int:
        return self.log.kept_count

    @property
    def deleted_count(self) -> int:
        return self.log.count_by_kind(DecisionKind.DELETED)

    @property
    def favourited_count(self) -> int:
        return self.log.count_by_kind(DecisionKind.FAVOURITED)

    def swipes_per_minute(self) -> int:
        """Return the decision rate over the velocity window ending now."""
        if self.tracker is None:
            return 0
        return self.tracker.swipes_per_minute(now=self.clock())

    def progress(self) -> float:
        """Return the reviewed fraction of the collection."""
        total = self.total_count
        if total == 0:
            return 0.0
        return self.current_index / total

    def decide(self, kind: DecisionKind) -> Decision:
        """Record a decision for the current item and advance."""
        asyncio.get_running_loop()
        item = self.current_item()
        if self.status is not SessionStatus.ACTIVE or item is None:
            raise NoCurrentItem(f"Scope {self.scope_id} has no item awaiting review")

        decision = Decision(index=self.current_index, media_id=item.id, kind=kind)
        self.log.append(decision)
        self.writer.save_pending(self.scope_id, list(self.log.all()))
        self.current_index += 1
        self.writer.save_position(self.scope_id, self.current_index)

        timestamp = self.clock()
        self._bus.publish(
            DecisionRecorded(scope_id=self.scope_id, decision=decision, timestamp=timestamp)
        )
        if self.tracker is not None:
            self.tracker.observe(
                timestamp, was_deletion=kind is DecisionKind.DELETED, media=item
            )

        if self.current_index >= self.total_count:
            self.status = SessionStatus.FINISHED
            _logger.info("Session finished: scope=%s", self.scope_id)
            self._bus.publish(
                SessionFinished(
                    scope_id=self.scope_id,
                    kept_count=self.kept_count,
                    deleted_count=self.deleted_count,
                    favourited_count=self.favourited_count,
                )
            )
        self._rewarm()
        return decision

    def undo(self) -> Decision:
        """Remove the most recent decision and step back to its item."""
        asyncio.get_running_loop()
        if self.current_index == 0 or len(self.log) == 0:
            raise NothingToUndo(f"Scope {self.scope_id} has nothing to undo")

        decision = self.log.undo_last()
        if decision is None:
            raise NothingToUndo(f"Scope {self.scope_id} has nothing to undo")
        self.current_index -= 1
        self.status = SessionStatus.ACTIVE
        self.writer.save_pending(self.scope_id, list(self.log.all()))
        self.writer.save_position(self.scope_id, self.current_index)
        self._bus.publish(DecisionUndone(scope_id=self.scope_id, decision=decision))
        self._rewarm()
        return decision

    def finalize(self) -> DeletionBatch:
        """Return the items marked for deletion once the scope is finished."""
        if self.status is not SessionStatus.FINISHED or self.collection is None:
            raise SessionNotFinished(f"Scope {self.scope_id} is not finished")
        collection = self.collection
        return DeletionBatch(
            scope_id=self.scope_id,
            items=tuple(
                collection[decision.index]
                for decision in self.log.all()
                if decision.kind is DecisionKind.DELETED
            ),
        )

    async def commit(self, deletion_gateway: DeletionGateway) -> DeletionBatch:
        """Execute the deletion batch and mark the scope complete on success.

        On failure the decisions and persisted progress are left untouched so
        the same batch can be retried.
        """
        batch = self.finalize()
        if batch.items:
            try:
                await asyncio.to_thread(deletion_gateway.delete_media, batch)
            except Exception as exc:
                _logger.warning(
                    "Deletion failed: scope=%s items=%s error=%s",
                    self.scope_id,
                    len(batch),
                    exc,
                )
                raise DeletionExecutionFailed(
                    f"Deleting {len(batch)} items from {self.scope_id} failed"
                ) from exc
        self.mark_complete()
        return batch

    def mark_complete(self) -> None:
        """Clear pending decisions and persist the scope as fully reviewed."""
        total = self.total_count
        self.writer.clear_pending(self.scope_id)
        self.writer.save_position(self.scope_id, total)
        self._teardown()
        self.current_index = total
        self.status = SessionStatus.FINISHED
        _logger.info("Scope complete: scope=%s total=%s", self.scope_id, total)

    def abandon(self) -> None:
        """Discard this scope's decisions and reset its persisted position."""
        self.writer.clear_pending(self.scope_id)
        self.writer.save_position(self.scope_id, 0)
        self._teardown()
        self.current_index = 0
        self.status = SessionStatus.LOADING
        _logger.info("Session abandoned: scope=%s", self.scope_id)

    async def drain(self) -> None:
        """Wait for outstanding prefetch and persistence work."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.writer.flush()

    async def close(self) -> None:
        """Flush pending writes and release cached media."""
        await self.drain()
        self.cache.clear()

    def _teardown(self) -> None:
        self.log.clear()
        self.cache.clear()

    def _rewarm(self) -> None:
        self.cache.evict(self.current_index)
        if self.collection is not None and self.current_index < len(self.collection):
            self._spawn(self.cache.ensure_window(self.current_index, self.collection))

    def _spawn(self, coroutine: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
