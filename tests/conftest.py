"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from swipe_review.adapters.media_loader import MediaLoader
from swipe_review.config import Settings
from swipe_review.containers import AppContainer, engine_factory
from swipe_review.domain.decisions import Decision, DeletionBatch
from swipe_review.domain.media import (
    Collection,
    LibraryAsset,
    MediaKind,
    MediaRef,
    RenderedMedia,
)
from swipe_review.domain.stats import LifetimeStats
from swipe_review.services.cache import PrefetchCache
from swipe_review.services.persistence import PersistenceGateway
from swipe_review.services.review import ReviewService
from swipe_review.services.scopes import MediaLibrary, ScopeService
from swipe_review.services.sessions import DeletionGateway, SessionEngine
from swipe_review.services.stats import StatsRepository, StatsService
from swipe_review.services.velocity import VelocityTracker


@dataclass
class InMemoryPersistenceGateway(PersistenceGateway):
    """In-memory progress store for tests."""

    positions: dict[str, int] = field(default_factory=dict)
    pending: dict[str, list[Decision]] = field(default_factory=dict)
    writes: list[tuple[str, str, object]] = field(default_factory=list)
    fail_writes: bool = False

    def save_position(self, scope_id: str, index: int) -> None:
        self._check()
        self.writes.append((scope_id, "position", index))
        self.positions[scope_id] = index

    def get_position(self, scope_id: str) -> int:
        return self.positions.get(scope_id, 0)

    def save_pending_decisions(self, scope_id: str, decisions: list[Decision]) -> None:
        self._check()
        self.writes.append((scope_id, "pending", len(decisions)))
        self.pending[scope_id] = list(decisions)

    def get_pending_decisions(self, scope_id: str) -> list[Decision]:
        return list(self.pending.get(scope_id, []))

    def clear_pending_decisions(self, scope_id: str) -> None:
        self._check()
        self.writes.append((scope_id, "pending", None))
        self.pending.pop(scope_id, None)

    def _check(self) -> None:
        if self.fail_writes:
            raise RuntimeError("storage unavailable")


@dataclass
class FakeMediaLoader(MediaLoader):
    """Fake media loader that records requests and can fail or stall."""

    calls: list[str] = field(default_factory=list)
    failing_ids: set[str] = field(default_factory=set)
    empty_ids: set[str] = field(default_factory=set)
    gate: asyncio.Event | None = None
    closed: bool = False

    async def load(
        self, media: MediaRef, target_size: tuple[int, int]
    ) -> RenderedMedia | None:
        self.calls.append(media.id)
        if self.gate is not None:
            await self.gate.wait()
        if media.id in self.failing_ids:
            raise RuntimeError(f"cannot render {media.id}")
        if media.id in self.empty_ids:
            return None
        width, height = target_size
        return RenderedMedia(
            media_id=media.id,
            content=f"image:{media.id}".encode(),
            content_type="image/jpeg",
            width=width,
            height=height,
        )

    async def close(self) -> None:
        self.closed = True


@dataclass
class InMemoryMediaLibrary(MediaLibrary):
    """In-memory media library for tests."""

    assets: list[LibraryAsset] = field(default_factory=list)

    def list_assets(self) -> list[LibraryAsset]:
        return list(self.assets)

    def add_month(
        self, year: int, month: int, count: int, size_bytes: int = 3 * 1024 * 1024
    ) -> list[LibraryAsset]:
        added = [
            LibraryAsset(
                id=f"{year}-{month:02d}-{index:03d}",
                created_at=datetime(year, month, 1 + index % 28, 12, tzinfo=UTC),
                kind=MediaKind.PHOTO,
                size_bytes=size_bytes,
            )
            for index in range(count)
        ]
        self.assets.extend(added)
        return added

    def remove(self, media_ids: list[str]) -> None:
        removed = set(media_ids)
        self.assets = [asset for asset in self.assets if asset.id not in removed]


@dataclass
class FakeDeletionGateway(DeletionGateway):
    """Fake deletion gateway that records batches and can fail."""

    batches: list[DeletionBatch] = field(default_factory=list)
    fail: bool = False
    library: InMemoryMediaLibrary | None = None

    def delete_media(self, batch: DeletionBatch) -> None:
        if self.fail:
            raise RuntimeError("library refused the deletion")
        self.batches.append(batch)
        if self.library is not None:
            self.library.remove(batch.media_ids)


@dataclass
class InMemoryStatsRepository(StatsRepository):
    """In-memory stats repository for tests."""

    stats: LifetimeStats = field(default_factory=LifetimeStats)

    def load_stats(self) -> LifetimeStats:
        return self.stats

    def save_stats(self, stats: LifetimeStats) -> None:
        self.stats = stats


@dataclass
class FakeClock:
    """Monotonic clock advanced explicitly by tests."""

    now: float = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_collection(
    count: int, scope_id: str = "2024-3", size_bytes: int = 3 * 1024 * 1024
) -> Collection:
    return Collection(
        scope_id=scope_id,
        items=tuple(
            MediaRef(
                id=f"media-{index}",
                index=index,
                estimated_size_bytes=size_bytes,
                kind=MediaKind.PHOTO,
            )
            for index in range(count)
        ),
    )


def make_engine(
    gateway: InMemoryPersistenceGateway | None = None,
    loader: FakeMediaLoader | None = None,
    tracker: VelocityTracker | None = None,
    clock: FakeClock | None = None,
    scope_id: str = "2024-3",
) -> SessionEngine:
    return SessionEngine(
        scope_id=scope_id,
        cache=PrefetchCache(loader=loader or FakeMediaLoader()),
        gateway=gateway or InMemoryPersistenceGateway(),
        tracker=tracker,
        clock=clock or FakeClock(),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        api_token="api-token",
        media_base_url="https://media.example.com",
    )


@pytest.fixture
def persistence_gateway() -> InMemoryPersistenceGateway:
    return InMemoryPersistenceGateway()


@pytest.fixture
def media_loader() -> FakeMediaLoader:
    return FakeMediaLoader()


@pytest.fixture
def media_library() -> InMemoryMediaLibrary:
    return InMemoryMediaLibrary()


@pytest.fixture
def deletion_gateway(media_library: InMemoryMediaLibrary) -> FakeDeletionGateway:
    return FakeDeletionGateway(library=media_library)


@pytest.fixture
def stats_repository() -> InMemoryStatsRepository:
    return InMemoryStatsRepository()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    persistence_gateway: InMemoryPersistenceGateway,
    media_loader: FakeMediaLoader,
    media_library: InMemoryMediaLibrary,
    deletion_gateway: FakeDeletionGateway,
    stats_repository: InMemoryStatsRepository,
) -> AppContainer:
    scope_service = ScopeService(library=media_library, gateway=persistence_gateway)
    stats_service = StatsService(stats_repository)
    review_service = ReviewService(
        scope_service=scope_service,
        gateway=persistence_gateway,
        deletion_gateway=deletion_gateway,
        stats_service=stats_service,
        engine_factory=engine_factory(settings, media_loader, persistence_gateway),
    )

    async def close_resources() -> None:
        await review_service.close_all()

    return AppContainer(
        settings=settings,
        media_loader=media_loader,
        persistence_gateway=persistence_gateway,
        scope_service=scope_service,
        stats_service=stats_service,
        review_service=review_service,
        close_resources=close_resources,
    )
