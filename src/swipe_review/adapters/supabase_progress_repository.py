"""Supabase-backed scope progress repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from swipe_review.domain.decisions import (
    Decision,
    decision_from_payload,
    decision_to_payload,
)
from swipe_review.domain.errors import PersistenceWriteFailed
from swipe_review.services.persistence import PersistenceGateway


@dataclass
class SupabaseProgressRepository(PersistenceGateway):
    """Supabase implementation for per-scope position and pending decisions."""

    client: Client
    table_name: str = "scope_progress"

    def save_position(self, scope_id: str, index: int) -> None:
        """Upsert the traversal position for a scope."""
        self._upsert(scope_id, {"position": index})

    def get_position(self, scope_id: str) -> int:
        """Return the stored position, defaulting to 0."""
        row = self._select(scope_id, "position")
        if row is None:
            return 0
        position = row.get("position")
        return position if isinstance(position, int) and position >= 0 else 0

    def save_pending_decisions(self, scope_id: str, decisions: list[Decision]) -> None:
        """Upsert the pending decision log for a scope."""
        self._upsert(
            scope_id,
            {"pending_decisions": [decision_to_payload(item) for item in decisions]},
        )

    def get_pending_decisions(self, scope_id: str) -> list[Decision]:
        """Return the stored pending decisions, skipping malformed entries."""
        row = self._select(scope_id, "pending_decisions")
        if row is None:
            return []
        payload = row.get("pending_decisions") or []
        if not isinstance(payload, list):
            return []
        decisions = []
        for entry in payload:
            if not isinstance(entry, dict):
                continue
            decision = decision_from_payload(entry)
            if decision is not None:
                decisions.append(decision)
        return decisions

    def clear_pending_decisions(self, scope_id: str) -> None:
        """Remove the pending decision log for a scope."""
        self.client.table(self.table_name).update(
            {
                "pending_decisions": None,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).eq("scope_id", scope_id).execute()

    def _upsert(self, scope_id: str, values: dict[str, object]) -> None:
        response = (
            self.client.table(self.table_name)
            .upsert(
                {
                    "scope_id": scope_id,
                    **values,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="scope_id",
            )
            .execute()
        )
        if not response.data:
            raise PersistenceWriteFailed(f"Failed to save progress for {scope_id}")

    def _select(self, scope_id: str, columns: str) -> dict[str, object] | None:
        response = (
            self.client.table(self.table_name)
            .select(columns)
            .eq("scope_id", scope_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0]
