"""Application service that owns open review sessions per scope."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from swipe_review.domain.decisions import DeletionBatch
from swipe_review.domain.errors import SessionNotOpen
from swipe_review.services.persistence import PersistenceGateway
from swipe_review.services.scopes import ScopeService
from swipe_review.services.sessions import DeletionGateway, SessionEngine
from swipe_review.services.stats import StatsService
from swipe_review.services.velocity import ReportedSizeEstimator

_logger = logging.getLogger(__name__)


@dataclass
class ReviewService:
    """Opens, completes and closes review sessions, one engine per scope."""

    scope_service: ScopeService
    gateway: PersistenceGateway
    deletion_gateway: DeletionGateway
    stats_service: StatsService
    engine_factory: Callable[[str], SessionEngine]
    _engines: dict[str, SessionEngine] = field(
        default_factory=dict, init=False, repr=False
    )

    def open_session(self, scope_id: str) -> SessionEngine:
        """Return the open engine for a scope, starting or resuming it if needed."""
        engine = self._engines.get(scope_id)
        if engine is not None:
            return engine
        collection = self.scope_service.load_collection(scope_id)
        position = self.gateway.get_position(scope_id)
        pending = self.gateway.get_pending_decisions(scope_id)
        engine = self.engine_factory(scope_id)
        engine.start(collection, resume_from=position, pending_decisions=pending)
        self._engines[scope_id] = engine
        return engine

    def get_session(self, scope_id: str) -> SessionEngine:
        engine = self._engines.get(scope_id)
        if engine is None:
            raise SessionNotOpen(f"No open session for scope {scope_id}")
        return engine

    def open_scopes(self) -> list[str]:
        return sorted(self._engines)

    async def complete_session(self, scope_id: str) -> DeletionBatch:
        """Delete the reviewed batch, mark the scope done and record stats."""
        engine = self.get_session(scope_id)
        reviewed = len(engine.log)
        deleted = engine.deleted_count
        favourited = engine.favourited_count
        batch = await engine.commit(self.deletion_gateway)
        try:
            self.stats_service.record_session(
                reviewed=reviewed,
                deleted=deleted,
                favourited=favourited,
                storage_freed_mb=_reported_size_mb(batch),
            )
            self.stats_service.record_scope_completed()
        finally:
            await self.close_session(scope_id)
        _logger.info(
            "Review completed: scope=%s reviewed=%s deleted=%s",
            scope_id,
            reviewed,
            deleted,
        )
        return batch

    async def abandon_session(self, scope_id: str) -> None:
        """Discard a scope's decisions and close its session."""
        engine = self.get_session(scope_id)
        engine.abandon()
        await self.close_session(scope_id)

    async def close_session(self, scope_id: str) -> None:
        """Flush and release a session while keeping its persisted progress."""
        engine = self._engines.pop(scope_id, None)
        if engine is not None:
            await engine.close()

    async def close_all(self) -> None:
        for scope_id in list(self._engines):
            await self.close_session(scope_id)


def _reported_size_mb(batch: DeletionBatch) -> float:
    estimator = ReportedSizeEstimator()
    return sum(estimator(item) for item in batch.items)
