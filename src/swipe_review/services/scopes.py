"""Calendar-month scopes over the media library."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from swipe_review.domain.errors import ScopeNotFound
from swipe_review.domain.media import Collection, LibraryAsset
from swipe_review.domain.scopes import (
    ScopeProgress,
    month_scope_id,
    parse_month_scope_id,
)
from swipe_review.services.persistence import PersistenceGateway

_logger = logging.getLogger(__name__)


class MediaLibrary(Protocol):
    """Read access to the media library."""

    def list_assets(self) -> list[LibraryAsset]:
        """Return every reviewable asset in the library."""


@dataclass
class ScopeService:
    """Groups the library into month scopes and tracks their progress."""

    library: MediaLibrary
    gateway: PersistenceGateway
    timezone_name: str = "UTC"

    def list_scopes(self) -> list[ScopeProgress]:
        """Return every month scope, oldest first, with its persisted progress."""
        scopes = []
        for (year, month), assets in sorted(self._group_by_month().items()):
            scope_id = month_scope_id(year, month)
            scopes.append(
                ScopeProgress(
                    scope_id=scope_id,
                    year=year,
                    month=month,
                    total_count=len(assets),
                    reviewed_count=self.gateway.get_position(scope_id),
                )
            )
        return scopes

    def load_collection(self, scope_id: str) -> Collection:
        """Build the traversal collection for a scope."""
        parsed = parse_month_scope_id(scope_id)
        if parsed is None:
            raise ScopeNotFound(f"Unknown scope: {scope_id}")
        assets = self._group_by_month().get(parsed)
        if not assets:
            raise ScopeNotFound(f"Unknown scope: {scope_id}")
        return Collection.build(scope_id, assets)

    def mark_completed(self, scope: ScopeProgress) -> None:
        """Persist a scope as fully reviewed and drop its pending decisions."""
        self.gateway.save_position(scope.scope_id, scope.total_count)
        self.gateway.clear_pending_decisions(scope.scope_id)

    def mark_completed_before(self, year: int, month: int = 1) -> list[str]:
        """Mark every scope strictly before the given month as completed."""
        completed = []
        for scope in self.list_scopes():
            if (scope.year, scope.month) < (year, month):
                self.mark_completed(scope)
                completed.append(scope.scope_id)
        _logger.info("Marked scopes completed: count=%s", len(completed))
        return completed

    def completed_count(self) -> int:
        return sum(1 for scope in self.list_scopes() if scope.is_completed)

    def _group_by_month(self) -> dict[tuple[int, int], list[LibraryAsset]]:
        tz = ZoneInfo(self.timezone_name)
        groups: dict[tuple[int, int], list[LibraryAsset]] = defaultdict(list)
        for asset in self.library.list_assets():
            if asset.created_at is None:
                continue
            local = _as_aware(asset.created_at).astimezone(tz)
            groups[(local.year, local.month)].append(asset)
        for assets in groups.values():
            assets.sort(key=lambda asset: (_as_aware(asset.created_at), asset.id))
        return dict(groups)


def _as_aware(value: datetime | None) -> datetime:
    if value is None:
        return datetime.min.replace(tzinfo=UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
