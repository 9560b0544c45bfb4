"""Domain models for lifetime review statistics."""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from swipe_review.domain.media import MB_PER_GB


@dataclass(frozen=True)
class LifetimeStats:
    """Cumulative review totals across all sessions."""

    total_reviewed: int = 0
    total_kept: int = 0
    total_deleted: int = 0
    total_favourited: int = 0
    scopes_completed: int = 0
    storage_freed_mb: float = 0.0
    current_streak: int = 0
    best_streak: int = 0
    sessions_completed: int = 0
    last_session_day: date | None = None

    @property
    def delete_ratio(self) -> float:
        """Percentage of reviewed items that were deleted."""
        if self.total_reviewed <= 0:
            return 0.0
        return self.total_deleted / self.total_reviewed * 100

    @property
    def storage_freed_formatted(self) -> str:
        if self.storage_freed_mb >= MB_PER_GB:
            return f"{self.storage_freed_mb / MB_PER_GB:.1f} GB"
        return f"{self.storage_freed_mb:.0f} MB"


@dataclass(frozen=True)
class AchievementDefinition:
    """Declarative achievement definition."""

    title: str
    description: str
    metric: str
    threshold: float


class Achievement(Enum):
    """Unlockable achievements (single source of truth)."""

    FIRST_TEN = AchievementDefinition(
        "First Ten", "Review 10 photos", "total_reviewed", 10
    )
    CENTURION = AchievementDefinition(
        "Centurion", "Review 100 photos", "total_reviewed", 100
    )
    HALF_K = AchievementDefinition("500 Club", "Review 500 photos", "total_reviewed", 500)
    THOUSAND_CLUB = AchievementDefinition(
        "1K Club", "Review 1,000 photos", "total_reviewed", 1000
    )
    CLEANUP_CREW = AchievementDefinition(
        "Cleanup Crew", "Delete 50 photos", "total_deleted", 50
    )
    STORAGE_HERO = AchievementDefinition(
        "Storage Hero", "Delete 200 photos", "total_deleted", 200
    )
    DELETE_MASTER = AchievementDefinition(
        "Delete Master", "Delete 500 photos", "total_deleted", 500
    )
    SPACE_SAVER = AchievementDefinition(
        "Space Saver", "Free 100 MB", "storage_freed_mb", 100
    )
    GIGABYTE_FREEDOM = AchievementDefinition(
        "GB Freedom", "Free 1 GB", "storage_freed_mb", 1024
    )
    ON_FIRE = AchievementDefinition("On Fire", "3 day streak", "best_streak", 3)
    WEEK_WARRIOR = AchievementDefinition(
        "Week Warrior", "7 day streak", "best_streak", 7
    )
    FAVOURITE_FINDER = AchievementDefinition(
        "Favourite Finder", "Favourite 25 photos", "total_favourited", 25
    )
    MONTH_ONE = AchievementDefinition(
        "First Month", "Complete 1 month", "scopes_completed", 1
    )
    MONTH_SIX = AchievementDefinition(
        "Half Year", "Complete 6 months", "scopes_completed", 6
    )
    MONTH_TWELVE = AchievementDefinition(
        "Year Clean", "Complete 12 months", "scopes_completed", 12
    )

    def is_unlocked(self, stats: LifetimeStats) -> bool:
        value = getattr(stats, self.value.metric)
        return value >= self.value.threshold
