"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from swipe_review.adapters.media_loader import HttpxMediaLoader, MediaLoader
from swipe_review.adapters.supabase_media_repository import SupabaseMediaRepository
from swipe_review.adapters.supabase_progress_repository import (
    SupabaseProgressRepository,
)
from swipe_review.adapters.supabase_stats_repository import SupabaseStatsRepository
from swipe_review.config import Settings, parse_thresholds
from swipe_review.services.cache import PrefetchCache
from swipe_review.services.persistence import PersistenceGateway
from swipe_review.services.review import ReviewService
from swipe_review.services.scopes import ScopeService
from swipe_review.services.sessions import SessionEngine
from swipe_review.services.stats import StatsService
from swipe_review.services.velocity import (
    DEFAULT_DELETE_MILESTONES,
    DEFAULT_STORAGE_MILESTONES_MB,
    VelocityTracker,
    build_size_estimator,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    media_loader: MediaLoader
    persistence_gateway: PersistenceGateway
    scope_service: ScopeService
    stats_service: StatsService
    review_service: ReviewService
    close_resources: Callable[[], Awaitable[None]]


def engine_factory(
    settings: Settings,
    media_loader: MediaLoader,
    gateway: PersistenceGateway,
) -> Callable[[str], SessionEngine]:
    """Return a factory that builds a configured engine for a scope."""
    delete_milestones = (
        parse_thresholds(settings.delete_milestones) or DEFAULT_DELETE_MILESTONES
    )
    storage_milestones = (
        parse_thresholds(settings.storage_milestones_mb)
        or DEFAULT_STORAGE_MILESTONES_MB
    )

    def build(scope_id: str) -> SessionEngine:
        cache = PrefetchCache(
            loader=media_loader,
            target_size=(settings.render_width, settings.render_height),
            lagging_margin=settings.prefetch_lagging_margin,
            leading_margin=settings.prefetch_leading_margin,
        )
        tracker = VelocityTracker(
            fire_interval_seconds=settings.fire_interval_seconds,
            fire_streak_required=settings.fire_streak_required,
            window_seconds=settings.velocity_window_seconds,
            delete_milestones=delete_milestones,
            storage_milestones_mb=storage_milestones,
            size_estimator=build_size_estimator(settings.size_estimator),
        )
        return SessionEngine(
            scope_id=scope_id, cache=cache, gateway=gateway, tracker=tracker
        )

    return build


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    progress_repository = SupabaseProgressRepository(supabase_client)
    media_repository = SupabaseMediaRepository(supabase_client)
    stats_repository = SupabaseStatsRepository(supabase_client)
    media_loader = HttpxMediaLoader.create(
        base_url=resolved_settings.media_base_url,
        api_key=resolved_settings.media_api_key,
    )
    scope_service = ScopeService(
        library=media_repository,
        gateway=progress_repository,
        timezone_name=resolved_settings.timezone,
    )
    stats_service = StatsService(
        stats_repository, timezone_name=resolved_settings.timezone
    )
    review_service = ReviewService(
        scope_service=scope_service,
        gateway=progress_repository,
        deletion_gateway=media_repository,
        stats_service=stats_service,
        engine_factory=engine_factory(
            resolved_settings, media_loader, progress_repository
        ),
    )

    async def close_resources() -> None:
        await review_service.close_all()
        await media_loader.close()

    return AppContainer(
        settings=resolved_settings,
        media_loader=media_loader,
        persistence_gateway=progress_repository,
        scope_service=scope_service,
        stats_service=stats_service,
        review_service=review_service,
        close_resources=close_resources,
    )
