"""Pydantic models for the review HTTP API."""

from pydantic import BaseModel, Field

from swipe_review.domain.decisions import DecisionKind


class DecisionRequest(BaseModel):
    """Decision submitted for the current item."""

    kind: DecisionKind


class CompleteBeforeRequest(BaseModel):
    """Marks every scope before a month as already reviewed."""

    year: int = Field(ge=1900, le=9999)
    month: int = Field(default=1, ge=1, le=12)


class MediaItemView(BaseModel):
    """Media item awaiting a decision."""

    id: str
    index: int
    kind: str
    estimated_size_bytes: int


class SignalView(BaseModel):
    """Session or velocity signal queued for the client."""

    type: str
    title: str | None = None
    on_fire: bool | None = None
    threshold: float | None = None


class SessionView(BaseModel):
    """Snapshot of a review session."""

    scope_id: str
    status: str
    current_index: int
    total_count: int
    progress: float
    current_item: MediaItemView | None
    can_undo: bool
    kept_count: int
    deleted_count: int
    favourited_count: int
    on_fire: bool
    swipes_per_minute: int
    signals: list[SignalView] = Field(default_factory=list)


class ScopeView(BaseModel):
    """Review progress for a month scope."""

    scope_id: str
    display_name: str
    full_display_name: str
    total_count: int
    reviewed_count: int
    progress: float
    is_completed: bool
    remaining_count: int


class BatchView(BaseModel):
    """Items marked for deletion."""

    scope_id: str
    media_ids: list[str]
    count: int
    estimated_size_bytes: int


class AchievementView(BaseModel):
    """Unlocked achievement."""

    title: str
    description: str


class StatsView(BaseModel):
    """Lifetime statistics."""

    total_reviewed: int
    total_kept: int
    total_deleted: int
    total_favourited: int
    scopes_completed: int
    storage_freed: str
    delete_ratio: float
    current_streak: int
    best_streak: int
    sessions_completed: int
    achievements: list[AchievementView]
