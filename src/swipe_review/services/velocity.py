"""Swipe velocity, fire streaks and milestone detection."""

import random
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from swipe_review.domain.events import (
    FireToggled,
    MilestoneCrossed,
    MilestoneKind,
    SessionSummary,
)
from swipe_review.domain.media import MB_PER_GB, MediaRef
from swipe_review.services.events import EventBus

DEFAULT_DELETE_MILESTONES: tuple[float, ...] = (10, 25, 50, 100, 200, 500, 1000)
DEFAULT_STORAGE_MILESTONES_MB: tuple[float, ...] = (50, 100, 250, 500, MB_PER_GB)
_BYTES_PER_MB = 1024 * 1024

TrackerSignal = FireToggled | MilestoneCrossed


class SizeEstimator(Protocol):
    """Estimates the storage an item frees when deleted, in megabytes."""

    def __call__(self, media: MediaRef | None) -> float:
        """Return the estimated size in MB."""


@dataclass
class ReportedSizeEstimator:
    """Uses the size reported by the library, with a flat fallback."""

    fallback_mb: float = 3.0

    def __call__(self, media: MediaRef | None) -> float:
        if media is None or media.estimated_size_bytes <= 0:
            return self.fallback_mb
        return media.estimated_size_bytes / _BYTES_PER_MB


@dataclass
class RandomSizeEstimator:
    """Draws a plausible per-item size, ignoring the item itself."""

    low_mb: float = 2.0
    high_mb: float = 5.0
    rng: random.Random = field(default_factory=random.Random)

    def __call__(self, media: MediaRef | None) -> float:
        return self.rng.uniform(self.low_mb, self.high_mb)


def build_size_estimator(name: str) -> SizeEstimator:
    """Return the size estimator configured by name."""
    if name == "random":
        return RandomSizeEstimator()
    if name == "reported":
        return ReportedSizeEstimator()
    raise ValueError(f"Unknown size estimator: {name}")


@dataclass
class VelocityTracker:
    """Derives fire-streak and milestone signals from decision timing."""

    fire_interval_seconds: float = 0.8
    fire_streak_required: int = 3
    window_seconds: float = 60.0
    delete_milestones: tuple[float, ...] = DEFAULT_DELETE_MILESTONES
    storage_milestones_mb: tuple[float, ...] = DEFAULT_STORAGE_MILESTONES_MB
    size_estimator: SizeEstimator = field(default_factory=ReportedSizeEstimator)
    fire_streak: int = field(default=0, init=False)
    max_fire_streak: int = field(default=0, init=False)
    on_fire: bool = field(default=False, init=False)
    delete_count: int = field(default=0, init=False)
    storage_freed_mb: float = field(default=0.0, init=False)
    _last_timestamp: float | None = field(default=None, init=False, repr=False)
    _recent: deque[float] = field(default_factory=deque, init=False, repr=False)
    _bus: EventBus[TrackerSignal] = field(
        default_factory=EventBus, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self.delete_milestones = tuple(sorted(self.delete_milestones))
        self.storage_milestones_mb = tuple(sorted(self.storage_milestones_mb))

    def subscribe(self, listener: Callable[[TrackerSignal], None]) -> Callable[[], None]:
        """Register a listener for fire and milestone signals."""
        return self._bus.subscribe(listener)

    def observe(
        self, timestamp: float, was_deletion: bool, media: MediaRef | None = None
    ) -> list[TrackerSignal]:
        """Record one decision and return the signals it raised."""
        signals: list[TrackerSignal] = []
        self._recent.append(timestamp)
        while self._recent and timestamp - self._recent[0] > self.window_seconds:
            self._recent.popleft()

        if self._last_timestamp is not None:
            if timestamp - self._last_timestamp < self.fire_interval_seconds:
                self.fire_streak += 1
            else:
                self.fire_streak = max(0, self.fire_streak - 1)
            self.max_fire_streak = max(self.max_fire_streak, self.fire_streak)
            now_on_fire = self.fire_streak >= self.fire_streak_required
            if now_on_fire != self.on_fire:
                self.on_fire = now_on_fire
                signals.append(FireToggled(on_fire=now_on_fire, streak=self.fire_streak))
        self._last_timestamp = timestamp

        if was_deletion:
            previous_count = self.delete_count
            previous_storage = self.storage_freed_mb
            self.delete_count += 1
            self.storage_freed_mb += self.size_estimator(media)
            signals.extend(
                _crossed(
                    MilestoneKind.DELETE_COUNT,
                    self.delete_milestones,
                    previous_count,
                    self.delete_count,
                )
            )
            signals.extend(
                _crossed(
                    MilestoneKind.STORAGE_FREED_MB,
                    self.storage_milestones_mb,
                    previous_storage,
                    self.storage_freed_mb,
                )
            )

        for signal in signals:
            self._bus.publish(signal)
        return signals

    def swipes_per_minute(self, now: float | None = None) -> int:
        """Count decisions inside the sliding window ending at ``now``."""
        if now is None:
            return len(self._recent)
        return sum(1 for stamp in self._recent if now - stamp <= self.window_seconds)

    def reset(self) -> None:
        """Zero every counter and the streak state for a new scope."""
        self.fire_streak = 0
        self.max_fire_streak = 0
        self.on_fire = False
        self.delete_count = 0
        self.storage_freed_mb = 0.0
        self._last_timestamp = None
        self._recent.clear()

    def summary(self) -> SessionSummary:
        return SessionSummary(
            deleted_count=self.delete_count,
            storage_freed_mb=self.storage_freed_mb,
            was_on_fire=self.on_fire,
            max_fire_streak=self.max_fire_streak,
        )


def _crossed(
    kind: MilestoneKind,
    thresholds: tuple[float, ...],
    before: float,
    after: float,
) -> list[MilestoneCrossed]:
    return [
        MilestoneCrossed(kind=kind, threshold=threshold)
        for threshold in thresholds
        if before < threshold <= after
    ]
