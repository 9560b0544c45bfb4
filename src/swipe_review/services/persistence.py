"""Durable progress storage and the serialized background writer."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from swipe_review.domain.decisions import Decision

_logger = logging.getLogger(__name__)

POSITION_KEY = "position"
PENDING_KEY = "pending"


class PersistenceGateway(Protocol):
    """Key/value persistence for per-scope position and pending decisions."""

    def save_position(self, scope_id: str, index: int) -> None:
        """Persist the traversal position for a scope."""

    def get_position(self, scope_id: str) -> int:
        """Return the persisted position for a scope (0 when absent)."""

    def save_pending_decisions(self, scope_id: str, decisions: list[Decision]) -> None:
        """Persist the pending decision log for a scope."""

    def get_pending_decisions(self, scope_id: str) -> list[Decision]:
        """Return the pending decision log for a scope (empty when absent)."""

    def clear_pending_decisions(self, scope_id: str) -> None:
        """Remove the pending decision log for a scope."""


@dataclass
class ProgressWriter:
    """Fire-and-forget writer that serializes writes per (scope, key).

    A new write for a key replaces any write still waiting for that key, and
    waiting writes only start after the in-flight one finishes, so the last
    submitted value is always the one left in storage.
    """

    gateway: PersistenceGateway
    _waiting: dict[tuple[str, str], Callable[[], None]] = field(
        default_factory=dict, init=False, repr=False
    )
    _drains: dict[tuple[str, str], asyncio.Task[None]] = field(
        default_factory=dict, init=False, repr=False
    )
    failure_count: int = field(default=0, init=False)

    def save_position(self, scope_id: str, index: int) -> None:
        self._submit(
            (scope_id, POSITION_KEY),
            lambda: self.gateway.save_position(scope_id, index),
        )

    def save_pending(self, scope_id: str, decisions: list[Decision]) -> None:
        snapshot = list(decisions)
        self._submit(
            (scope_id, PENDING_KEY),
            lambda: self.gateway.save_pending_decisions(scope_id, snapshot),
        )

    def clear_pending(self, scope_id: str) -> None:
        self._submit(
            (scope_id, PENDING_KEY),
            lambda: self.gateway.clear_pending_decisions(scope_id),
        )

    async def flush(self) -> None:
        """Wait until every submitted write has been attempted."""
        while self._drains:
            await asyncio.gather(*list(self._drains.values()))

    def _submit(self, key: tuple[str, str], write: Callable[[], None]) -> None:
        loop = asyncio.get_running_loop()
        self._waiting[key] = write
        if key not in self._drains:
            self._drains[key] = loop.create_task(self._drain(key))

    async def _drain(self, key: tuple[str, str]) -> None:
        try:
            while key in self._waiting:
                write = self._waiting.pop(key)
                try:
                    await asyncio.to_thread(write)
                except Exception as exc:
                    self.failure_count += 1
                    _logger.warning(
                        "Persistence write failed: scope=%s key=%s error=%s",
                        key[0],
                        key[1],
                        exc,
                    )
        finally:
            self._drains.pop(key, None)
