"""Supabase-backed media library and deletion gateway."""

import logging
from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from swipe_review.domain.decisions import DeletionBatch
from swipe_review.domain.media import LibraryAsset, MediaKind
from swipe_review.services.scopes import MediaLibrary
from swipe_review.services.sessions import DeletionGateway

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseMediaRepository(MediaLibrary, DeletionGateway):
    """Supabase implementation for listing and deleting media items."""

    client: Client
    table_name: str = "media_items"
    page_size: int = 1000

    def list_assets(self) -> list[LibraryAsset]:
        """Return every photo and video ordered by creation time."""
        assets: list[LibraryAsset] = []
        offset = 0
        while True:
            response = (
                self.client.table(self.table_name)
                .select("id, created_at, media_type, size_bytes")
                .in_("media_type", [kind.value for kind in MediaKind])
                .order("created_at", desc=False)
                .range(offset, offset + self.page_size - 1)
                .execute()
            )
            rows = response.data or []
            assets.extend(_parse_row(row) for row in rows)
            if len(rows) < self.page_size:
                return assets
            offset += self.page_size

    def delete_media(self, batch: DeletionBatch) -> None:
        """Delete every media row in the batch, raising if any row survives.

        Rows that were already gone before the request count as deleted, so a
        batch retried after a partial failure still completes.
        """
        if not batch.items:
            return
        response = (
            self.client.table(self.table_name)
            .delete()
            .in_("id", batch.media_ids)
            .execute()
        )
        removed = len(response.data or [])
        if removed == len(batch):
            return
        _logger.warning(
            "Deletion count mismatch: scope=%s requested=%s removed=%s",
            batch.scope_id,
            len(batch),
            removed,
        )
        remaining = (
            self.client.table(self.table_name)
            .select("id")
            .in_("id", batch.media_ids)
            .execute()
        )
        if remaining.data:
            raise RuntimeError(
                f"{len(remaining.data)} media items in {batch.scope_id} were not deleted"
            )


def _parse_row(row: dict[str, object]) -> LibraryAsset:
    created_raw = row.get("created_at")
    size_raw = row.get("size_bytes")
    return LibraryAsset(
        id=str(row["id"]),
        created_at=datetime.fromisoformat(str(created_raw)) if created_raw else None,
        kind=MediaKind(row.get("media_type", MediaKind.PHOTO.value)),
        size_bytes=int(size_raw) if isinstance(size_raw, int | float) else 0,
    )
