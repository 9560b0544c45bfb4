"""Sliding-window prefetch cache for rendered media."""

import asyncio
import logging
from dataclasses import dataclass, field

from swipe_review.adapters.media_loader import MediaLoader
from swipe_review.domain.media import Collection, MediaRef

_logger = logging.getLogger(__name__)


@dataclass
class PrefetchCache:
    """Keeps rendered handles warm around the current traversal index.

    Entries are keyed by traversal index. Only ``[center - lagging_margin,
    center + leading_margin]`` survives an ``evict`` call, so the cache never
    holds more than ``lagging_margin + leading_margin + 1`` entries afterwards.
    """

    loader: MediaLoader
    target_size: tuple[int, int] = (800, 800)
    lagging_margin: int = 2
    leading_margin: int = 5
    hit_count: int = field(default=0, init=False)
    miss_count: int = field(default=0, init=False)
    _entries: dict[int, object] = field(default_factory=dict, init=False, repr=False)
    _in_flight: dict[int, asyncio.Task[object | None]] = field(
        default_factory=dict, init=False, repr=False
    )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, index: int) -> bool:
        return index in self._entries

    @property
    def max_resident(self) -> int:
        return self.lagging_margin + self.leading_margin + 1

    def get(self, index: int) -> object | None:
        """Return the cached handle for an index without waiting."""
        handle = self._entries.get(index)
        if handle is None:
            self.miss_count += 1
        else:
            self.hit_count += 1
        return handle

    def indices(self) -> list[int]:
        return sorted(self._entries)

    async def ensure_window(self, center: int, collection: Collection) -> None:
        """Load every uncached index from ``center`` through the leading margin."""
        end = min(center + self.leading_margin, len(collection) - 1)
        pending = [
            self._load(index, collection[index])
            for index in range(max(center, 0), end + 1)
            if index not in self._entries
        ]
        if pending:
            await asyncio.gather(*pending)

    def evict(self, center: int) -> None:
        """Drop every entry outside the window around ``center``."""
        low = center - self.lagging_margin
        high = center + self.leading_margin
        for index in [i for i in self._entries if not low <= i <= high]:
            del self._entries[index]

    def clear(self) -> None:
        """Release all entries and cancel loads still in flight."""
        for task in self._in_flight.values():
            task.cancel()
        self._in_flight.clear()
        self._entries.clear()

    async def _load(self, index: int, media: MediaRef) -> object | None:
        task = self._in_flight.get(index)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._fetch(index, media))
            self._in_flight[index] = task
            task.add_done_callback(lambda done: self._forget(index, done))
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                return None
            raise

    async def _fetch(self, index: int, media: MediaRef) -> object | None:
        try:
            handle = await self.loader.load(media, self.target_size)
        except Exception as exc:
            _logger.warning(
                "Media load failed: index=%s media_id=%s error=%s",
                index,
                media.id,
                exc,
            )
            return None
        if handle is None:
            _logger.info("Media load returned nothing: index=%s", index)
            return None
        self._entries[index] = handle
        return handle

    def _forget(self, index: int, task: asyncio.Task[object | None]) -> None:
        if self._in_flight.get(index) is task:
            del self._in_flight[index]
