"""Media rendering client adapter."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from swipe_review.domain.errors import LoadFailed
from swipe_review.domain.media import MediaRef, RenderedMedia

_logger = logging.getLogger(__name__)


class MediaLoader(Protocol):
    """Interface for fetching a renderable handle for a media item."""

    async def load(
        self, media: MediaRef, target_size: tuple[int, int]
    ) -> object | None:
        """Return a rendered handle, or None when the item cannot be rendered."""


@dataclass
class HttpxMediaLoader(MediaLoader):
    """Media loader backed by a rendering HTTP service."""

    base_url: str
    http_client: httpx.AsyncClient
    api_key: str | None = None

    @classmethod
    def create(cls, base_url: str, api_key: str | None = None) -> "HttpxMediaLoader":
        """Create a media loader with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            api_key=api_key,
        )

    async def load(
        self, media: MediaRef, target_size: tuple[int, int]
    ) -> RenderedMedia | None:
        """Fetch a rendition of the media item sized for display."""
        width, height = target_size
        url = f"{self.base_url}/media/{media.id}/render"
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None
        try:
            response = await self.http_client.get(
                url,
                params={"width": width, "height": height, "kind": media.kind.value},
                headers=headers,
                timeout=20,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise LoadFailed(f"Rendering {media.id} failed: {exc}") from exc
        if not response.content:
            _logger.info("Empty rendition: media_id=%s", media.id)
            return None
        return RenderedMedia(
            media_id=media.id,
            content=response.content,
            content_type=response.headers.get("content-type", "image/jpeg"),
            width=width,
            height=height,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
