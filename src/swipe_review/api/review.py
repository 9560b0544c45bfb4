"""Review API endpoints with simple token auth."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status

from swipe_review.api.models import (
    AchievementView,
    BatchView,
    CompleteBeforeRequest,
    DecisionRequest,
    MediaItemView,
    ScopeView,
    SessionView,
    SignalView,
    StatsView,
)
from swipe_review.domain.decisions import DeletionBatch
from swipe_review.domain.errors import (
    DeletionExecutionFailed,
    NoCurrentItem,
    NothingToUndo,
    ScopeNotFound,
    SessionNotFinished,
    SessionNotOpen,
)
from swipe_review.domain.events import (
    FireToggled,
    MilestoneCrossed,
    SessionEvent,
    SessionFinished,
)
from swipe_review.domain.media import RenderedMedia

if TYPE_CHECKING:
    from collections.abc import Callable

    from swipe_review.containers import AppContainer
    from swipe_review.services.sessions import SessionEngine

router = APIRouter(prefix="/scopes", tags=["review"])
stats_router = APIRouter(tags=["stats"])

_MAX_QUEUED_SIGNALS = 50


@dataclass
class SignalInbox:
    """Queues signals from one engine until the client polls for them."""

    engine: SessionEngine
    unsubscribe: Callable[[], None]
    signals: deque[SignalView] = field(
        default_factory=lambda: deque(maxlen=_MAX_QUEUED_SIGNALS)
    )

    def drain(self) -> list[SignalView]:
        drained = list(self.signals)
        self.signals.clear()
        return drained


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_api_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include a valid API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("", dependencies=[Depends(require_api_token)])
async def list_scopes(request: Request) -> list[ScopeView]:
    """Return every month scope with its review progress."""
    container: AppContainer = request.app.state.container
    return [
        ScopeView(
            scope_id=scope.scope_id,
            display_name=scope.display_name,
            full_display_name=scope.full_display_name,
            total_count=scope.total_count,
            reviewed_count=scope.reviewed_count,
            progress=scope.progress,
            is_completed=scope.is_completed,
            remaining_count=scope.remaining_count,
        )
        for scope in container.scope_service.list_scopes()
    ]


@router.post("/complete-before", dependencies=[Depends(require_api_token)])
async def complete_before(
    payload: CompleteBeforeRequest, request: Request
) -> dict[str, list[str]]:
    """Mark every scope before the given month as reviewed."""
    container: AppContainer = request.app.state.container
    completed = container.scope_service.mark_completed_before(
        payload.year, payload.month
    )
    return {"completed": completed}


@router.post("/{scope_id}/session", dependencies=[Depends(require_api_token)])
async def open_session(scope_id: str, request: Request) -> SessionView:
    """Start or resume the review session for a scope."""
    container: AppContainer = request.app.state.container
    try:
        engine = container.review_service.open_session(scope_id)
    except ScopeNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    inbox = _inbox_for(request, scope_id, engine)
    return _session_view(engine, inbox.drain())


@router.get("/{scope_id}/session", dependencies=[Depends(require_api_token)])
async def get_session(scope_id: str, request: Request) -> SessionView:
    """Return the session state and any queued signals."""
    engine = _open_engine(request, scope_id)
    inbox = _inbox_for(request, scope_id, engine)
    return _session_view(engine, inbox.drain())


@router.post("/{scope_id}/session/decisions", dependencies=[Depends(require_api_token)])
async def decide(
    scope_id: str, payload: DecisionRequest, request: Request
) -> SessionView:
    """Record a decision for the current item."""
    engine = _open_engine(request, scope_id)
    inbox = _inbox_for(request, scope_id, engine)
    try:
        engine.decide(payload.kind)
    except NoCurrentItem as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return _session_view(engine, inbox.drain())


@router.post("/{scope_id}/session/undo", dependencies=[Depends(require_api_token)])
async def undo(scope_id: str, request: Request) -> SessionView:
    """Undo the most recent decision."""
    engine = _open_engine(request, scope_id)
    inbox = _inbox_for(request, scope_id, engine)
    try:
        engine.undo()
    except NothingToUndo as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return _session_view(engine, inbox.drain())


@router.get("/{scope_id}/session/media", dependencies=[Depends(require_api_token)])
async def current_media(scope_id: str, request: Request) -> Response:
    """Return the prefetched rendition of the current item."""
    engine = _open_engine(request, scope_id)
    handle = engine.current_handle()
    if handle is None and engine.current_item() is not None:
        # the current index may still be loading
        await engine.drain()
        handle = engine.current_handle()
    if not isinstance(handle, RenderedMedia):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return Response(content=handle.content, media_type=handle.content_type)


@router.get("/{scope_id}/session/batch", dependencies=[Depends(require_api_token)])
async def deletion_batch(scope_id: str, request: Request) -> BatchView:
    """Return the items marked for deletion in a finished session."""
    engine = _open_engine(request, scope_id)
    try:
        batch = engine.finalize()
    except SessionNotFinished as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return _batch_view(batch)


@router.post("/{scope_id}/session/complete", dependencies=[Depends(require_api_token)])
async def complete_session(scope_id: str, request: Request) -> BatchView:
    """Delete the marked items and mark the scope as reviewed."""
    container: AppContainer = request.app.state.container
    try:
        batch = await container.review_service.complete_session(scope_id)
    except SessionNotOpen as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except SessionNotFinished as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except DeletionExecutionFailed as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        )
    _drop_inbox(request, scope_id)
    return _batch_view(batch)


@router.delete("/{scope_id}/session", dependencies=[Depends(require_api_token)])
async def abandon_session(scope_id: str, request: Request) -> dict[str, str]:
    """Discard the session's decisions and reset the scope."""
    container: AppContainer = request.app.state.container
    try:
        await container.review_service.abandon_session(scope_id)
    except SessionNotOpen as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    _drop_inbox(request, scope_id)
    return {"status": "abandoned"}


@stats_router.get("/stats", dependencies=[Depends(require_api_token)])
async def lifetime_stats(request: Request) -> StatsView:
    """Return lifetime totals and unlocked achievements."""
    container: AppContainer = request.app.state.container
    stats = container.stats_service.get_stats()
    return StatsView(
        total_reviewed=stats.total_reviewed,
        total_kept=stats.total_kept,
        total_deleted=stats.total_deleted,
        total_favourited=stats.total_favourited,
        scopes_completed=stats.scopes_completed,
        storage_freed=stats.storage_freed_formatted,
        delete_ratio=stats.delete_ratio,
        current_streak=stats.current_streak,
        best_streak=stats.best_streak,
        sessions_completed=stats.sessions_completed,
        achievements=[
            AchievementView(
                title=achievement.value.title,
                description=achievement.value.description,
            )
            for achievement in container.stats_service.unlocked_achievements()
        ],
    )


def _open_engine(request: Request, scope_id: str) -> SessionEngine:
    container: AppContainer = request.app.state.container
    try:
        return container.review_service.get_session(scope_id)
    except SessionNotOpen as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _inbox_for(request: Request, scope_id: str, engine: SessionEngine) -> SignalInbox:
    inboxes: dict[str, SignalInbox] = request.app.state.inboxes
    inbox = inboxes.get(scope_id)
    if inbox is not None and inbox.engine is engine:
        return inbox
    if inbox is not None:
        inbox.unsubscribe()
    queued: deque[SignalView] = deque(maxlen=_MAX_QUEUED_SIGNALS)

    def collect(event: SessionEvent) -> None:
        signal = _signal_view(event)
        if signal is not None:
            queued.append(signal)

    inbox = SignalInbox(
        engine=engine, unsubscribe=engine.subscribe(collect), signals=queued
    )
    inboxes[scope_id] = inbox
    return inbox


def _drop_inbox(request: Request, scope_id: str) -> None:
    inbox = request.app.state.inboxes.pop(scope_id, None)
    if inbox is not None:
        inbox.unsubscribe()


def _signal_view(event: SessionEvent) -> SignalView | None:
    if isinstance(event, FireToggled):
        return SignalView(type="fire", on_fire=event.on_fire)
    if isinstance(event, MilestoneCrossed):
        return SignalView(
            type=event.kind.value, title=event.title, threshold=event.threshold
        )
    if isinstance(event, SessionFinished):
        return SignalView(type="finished")
    return None


def _session_view(engine: SessionEngine, signals: list[SignalView]) -> SessionView:
    item = engine.current_item()
    tracker = engine.tracker
    return SessionView(
        scope_id=engine.scope_id,
        status=engine.status.value,
        current_index=engine.current_index,
        total_count=engine.total_count,
        progress=engine.progress(),
        current_item=(
            MediaItemView(
                id=item.id,
                index=item.index,
                kind=item.kind.value,
                estimated_size_bytes=item.estimated_size_bytes,
            )
            if item is not None
            else None
        ),
        can_undo=engine.can_undo,
        kept_count=engine.kept_count,
        deleted_count=engine.deleted_count,
        favourited_count=engine.favourited_count,
        on_fire=tracker.on_fire if tracker is not None else False,
        swipes_per_minute=engine.swipes_per_minute(),
        signals=signals,
    )


def _batch_view(batch: DeletionBatch) -> BatchView:
    return BatchView(
        scope_id=batch.scope_id,
        media_ids=batch.media_ids,
        count=len(batch),
        estimated_size_bytes=batch.estimated_size_bytes,
    )
