"""Lifetime statistics and achievements."""

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from swipe_review.domain.stats import Achievement, LifetimeStats


class StatsRepository(Protocol):
    """Persistence interface for lifetime statistics."""

    def load_stats(self) -> LifetimeStats:
        """Return the stored statistics (zeroed when absent)."""

    def save_stats(self, stats: LifetimeStats) -> None:
        """Persist the statistics."""


@dataclass
class StatsService:
    """Service for accumulating review statistics in the user's timezone."""

    repository: StatsRepository
    timezone_name: str = "UTC"

    def get_stats(self) -> LifetimeStats:
        return self.repository.load_stats()

    def record_session(
        self,
        *,
        reviewed: int,
        deleted: int,
        favourited: int,
        storage_freed_mb: float,
        today: date | None = None,
    ) -> LifetimeStats:
        """Add a completed session to the totals and update the day streak."""
        current = self.repository.load_stats()
        day = today or datetime.now(tz=ZoneInfo(self.timezone_name)).date()
        streak, best = _next_streak(current, day)
        updated = replace(
            current,
            total_reviewed=current.total_reviewed + reviewed,
            total_deleted=current.total_deleted + deleted,
            total_kept=current.total_kept + (reviewed - deleted),
            total_favourited=current.total_favourited + favourited,
            storage_freed_mb=current.storage_freed_mb + storage_freed_mb,
            sessions_completed=current.sessions_completed + 1,
            current_streak=streak,
            best_streak=best,
            last_session_day=day,
        )
        self.repository.save_stats(updated)
        return updated

    def record_scope_completed(self) -> LifetimeStats:
        current = self.repository.load_stats()
        updated = replace(current, scopes_completed=current.scopes_completed + 1)
        self.repository.save_stats(updated)
        return updated

    def unlocked_achievements(self) -> list[Achievement]:
        """Return achievements unlocked by the stored totals."""
        stats = self.repository.load_stats()
        return [achievement for achievement in Achievement if achievement.is_unlocked(stats)]


def _next_streak(stats: LifetimeStats, day: date) -> tuple[int, int]:
    if stats.last_session_day is None:
        streak = 1
    else:
        gap = (day - stats.last_session_day).days
        if gap == 1:
            streak = stats.current_streak + 1
        elif gap > 1:
            streak = 1
        else:
            streak = max(stats.current_streak, 1)
    return streak, max(stats.best_streak, streak)
