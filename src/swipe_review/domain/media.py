"""Domain models for media items and review collections."""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

MB_PER_GB = 1024


class MediaKind(Enum):
    """Kind of media item in the library."""

    PHOTO = "photo"
    LIVE_PHOTO = "live_photo"
    VIDEO = "video"


@dataclass(frozen=True)
class MediaRef:
    """Reference to one media item at a position in a traversal."""

    id: str
    index: int
    estimated_size_bytes: int
    kind: MediaKind


@dataclass(frozen=True)
class LibraryAsset:
    """Media item as stored in the library, before scoping."""

    id: str
    created_at: datetime | None
    kind: MediaKind
    size_bytes: int = 0


@dataclass(frozen=True)
class RenderedMedia:
    """Rendered media handle produced by a media loader."""

    media_id: str
    content: bytes
    content_type: str
    width: int
    height: int


@dataclass(frozen=True)
class Collection:
    """Ordered, immutable sequence of media for one review scope."""

    scope_id: str
    items: tuple[MediaRef, ...]

    @classmethod
    def build(cls, scope_id: str, assets: Sequence[LibraryAsset]) -> "Collection":
        """Create a collection, assigning traversal indices in order."""
        return cls(
            scope_id=scope_id,
            items=tuple(
                MediaRef(
                    id=asset.id,
                    index=index,
                    estimated_size_bytes=asset.size_bytes,
                    kind=asset.kind,
                )
                for index, asset in enumerate(assets)
            ),
        )

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> MediaRef:
        return self.items[index]

    def __iter__(self) -> Iterator[MediaRef]:
        return iter(self.items)

    def media_id_at(self, index: int) -> str | None:
        """Return the media id at an index, or None when out of range."""
        if 0 <= index < len(self.items):
            return self.items[index].id
        return None
