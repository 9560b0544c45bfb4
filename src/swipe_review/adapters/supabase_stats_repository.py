"""Supabase repository for lifetime review statistics."""

from dataclasses import asdict, dataclass
from datetime import UTC, date, datetime

from supabase import Client

from swipe_review.domain.stats import LifetimeStats
from swipe_review.services.stats import StatsRepository

_COLUMNS = (
    "total_reviewed, total_kept, total_deleted, total_favourited, scopes_completed, "
    "storage_freed_mb, current_streak, best_streak, sessions_completed, "
    "last_session_day"
)


@dataclass
class SupabaseStatsRepository(StatsRepository):
    """Supabase implementation for lifetime statistics."""

    client: Client
    profile: str = "default"

    def load_stats(self) -> LifetimeStats:
        """Return the stored statistics row, or zeroed stats."""
        response = (
            self.client.table("review_stats")
            .select(_COLUMNS)
            .eq("profile", self.profile)
            .limit(1)
            .execute()
        )
        if not response.data:
            return LifetimeStats()
        return _parse_row(response.data[0])

    def save_stats(self, stats: LifetimeStats) -> None:
        """Upsert the statistics row."""
        payload: dict[str, object] = asdict(stats)
        last_day = stats.last_session_day
        payload["last_session_day"] = last_day.isoformat() if last_day else None
        payload["profile"] = self.profile
        payload["updated_at"] = datetime.now(tz=UTC).isoformat()
        response = (
            self.client.table("review_stats")
            .upsert(payload, on_conflict="profile")
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save review stats")


def _parse_row(row: dict[str, object]) -> LifetimeStats:
    last_day = row.get("last_session_day")
    return LifetimeStats(
        total_reviewed=int(row.get("total_reviewed") or 0),
        total_kept=int(row.get("total_kept") or 0),
        total_deleted=int(row.get("total_deleted") or 0),
        total_favourited=int(row.get("total_favourited") or 0),
        scopes_completed=int(row.get("scopes_completed") or 0),
        storage_freed_mb=float(row.get("storage_freed_mb") or 0.0),
        current_streak=int(row.get("current_streak") or 0),
        best_streak=int(row.get("best_streak") or 0),
        sessions_completed=int(row.get("sessions_completed") or 0),
        last_session_day=date.fromisoformat(str(last_day)) if last_day else None,
    )
