"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import date

import pytest

from swipe_review.adapters.supabase_media_repository import SupabaseMediaRepository
from swipe_review.adapters.supabase_progress_repository import (
    SupabaseProgressRepository,
)
from swipe_review.adapters.supabase_stats_repository import SupabaseStatsRepository
from swipe_review.domain.decisions import Decision, DecisionKind, DeletionBatch
from swipe_review.domain.errors import PersistenceWriteFailed
from swipe_review.domain.media import MediaKind
from swipe_review.domain.stats import LifetimeStats
from tests.conftest import make_collection


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {
            "select": [],
            "upsert": [],
            "update": [],
            "delete": [],
        }
    )
    last_payload: object | None = None
    last_on_conflict: str | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    ranges: list[tuple[int, int]] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def upsert(self, payload, on_conflict: str = "") -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        self.last_on_conflict = on_conflict
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def in_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def range(self, start: int, end: int) -> "FakeTable":
        self.ranges.append((start, end))
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_progress_repository_saves_position() -> None:
    client = FakeSupabaseClient()
    table = client.table("scope_progress")
    table.queue("upsert", [{"scope_id": "2024-3", "position": 4}])

    repository = SupabaseProgressRepository(client)
    repository.save_position("2024-3", 4)

    assert isinstance(table.last_payload, dict)
    assert table.last_payload["position"] == 4
    assert table.last_payload["scope_id"] == "2024-3"
    assert table.last_on_conflict == "scope_id"


def test_progress_repository_raises_when_write_is_lost() -> None:
    repository = SupabaseProgressRepository(FakeSupabaseClient())

    with pytest.raises(PersistenceWriteFailed):
        repository.save_position("2024-3", 1)


def test_progress_repository_reads_defaults() -> None:
    repository = SupabaseProgressRepository(FakeSupabaseClient())

    assert repository.get_position("2024-3") == 0
    assert repository.get_pending_decisions("2024-3") == []


def test_progress_repository_pending_decisions() -> None:
    client = FakeSupabaseClient()
    table = client.table("scope_progress")
    decisions = [
        Decision(index=0, media_id="media-0", kind=DecisionKind.DELETED),
        Decision(index=1, media_id="media-1", kind=DecisionKind.FAVOURITED),
    ]
    table.queue("upsert", [{"scope_id": "2024-3"}])
    table.queue(
        "select",
        [
            {
                "pending_decisions": [
                    {"index": 0, "media_id": "media-0", "kind": "deleted"},
                    {"index": 1, "media_id": "media-1", "kind": "favourited"},
                    {"index": 2, "media_id": "media-2", "kind": "unknown"},
                    "garbage",
                ]
            }
        ],
    )
    table.queue("select", [{"position": 2}])

    repository = SupabaseProgressRepository(client)
    repository.save_pending_decisions("2024-3", decisions)
    saved_payload = table.last_payload
    fetched = repository.get_pending_decisions("2024-3")
    position = repository.get_position("2024-3")
    repository.clear_pending_decisions("2024-3")

    assert isinstance(saved_payload, dict)
    assert saved_payload["pending_decisions"][1]["kind"] == "favourited"
    assert fetched == decisions
    assert position == 2
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["pending_decisions"] is None


def test_media_repository_pages_through_assets() -> None:
    client = FakeSupabaseClient()
    table = client.table("media_items")
    table.queue(
        "select",
        [
            {
                "id": "a",
                "created_at": "2024-03-01T10:00:00+00:00",
                "media_type": "photo",
                "size_bytes": 1024,
            },
            {
                "id": "b",
                "created_at": "2024-03-02T10:00:00+00:00",
                "media_type": "video",
                "size_bytes": None,
            },
        ],
    )
    table.queue(
        "select",
        [{"id": "c", "created_at": None, "media_type": "live_photo"}],
    )

    repository = SupabaseMediaRepository(client, page_size=2)
    assets = repository.list_assets()

    assert [asset.id for asset in assets] == ["a", "b", "c"]
    assert assets[0].size_bytes == 1024
    assert assets[1].kind is MediaKind.VIDEO
    assert assets[1].size_bytes == 0
    assert assets[2].created_at is None
    assert table.ranges == [(0, 1), (2, 3)]


def test_media_repository_deletes_batch() -> None:
    client = FakeSupabaseClient()
    table = client.table("media_items")
    table.queue("delete", [{"id": "media-0"}, {"id": "media-2"}])
    collection = make_collection(3)
    batch = DeletionBatch(scope_id="2024-3", items=(collection[0], collection[2]))

    repository = SupabaseMediaRepository(client)
    repository.delete_media(batch)
    repository.delete_media(DeletionBatch(scope_id="2024-3", items=()))

    assert table.last_filters == [("id", ["media-0", "media-2"])]


def test_stats_repository_round_trip() -> None:
    client = FakeSupabaseClient()
    table = client.table("review_stats")
    stats = LifetimeStats(
        total_reviewed=12,
        total_deleted=3,
        storage_freed_mb=9.5,
        current_streak=2,
        last_session_day=date(2024, 3, 5),
    )
    table.queue("upsert", [{"profile": "default"}])
    table.queue(
        "select",
        [
            {
                "total_reviewed": 12,
                "total_deleted": 3,
                "storage_freed_mb": 9.5,
                "current_streak": 2,
                "last_session_day": "2024-03-05",
            }
        ],
    )

    repository = SupabaseStatsRepository(client)
    repository.save_stats(stats)
    payload = table.last_payload
    loaded = repository.load_stats()

    assert isinstance(payload, dict)
    assert payload["last_session_day"] == "2024-03-05"
    assert table.last_on_conflict == "profile"
    assert loaded == stats


def test_stats_repository_defaults_when_missing() -> None:
    repository = SupabaseStatsRepository(FakeSupabaseClient())

    assert repository.load_stats() == LifetimeStats()


def test_media_repository_accepts_rows_already_gone() -> None:
    client = FakeSupabaseClient()
    table = client.table("media_items")
    table.queue("delete", [{"id": "media-0"}])
    table.queue("select", [])
    collection = make_collection(2)
    batch = DeletionBatch(scope_id="2024-3", items=(collection[0], collection[1]))

    SupabaseMediaRepository(client).delete_media(batch)

    assert table.last_filters[-1] == ("id", ["media-0", "media-1"])


def test_media_repository_raises_when_rows_survive() -> None:
    client = FakeSupabaseClient()
    table = client.table("media_items")
    table.queue("delete", [{"id": "media-0"}])
    table.queue("select", [{"id": "media-1"}])
    collection = make_collection(2)
    batch = DeletionBatch(scope_id="2024-3", items=(collection[0], collection[1]))

    with pytest.raises(RuntimeError):
        SupabaseMediaRepository(client).delete_media(batch)
