"""Dependency container wiring for the challenge core."""

import random
from collections.abc import Callable
from dataclasses import dataclass

from ghost_streak.adapters.sqlalchemy_catalog import (
    SqlAlchemyRestrictionCatalog,
    seed_restrictions,
)
from ghost_streak.adapters.sqlalchemy_store import SqlAlchemyChallengeStore
from ghost_streak.config import Settings
from ghost_streak.services.cache import InMemoryCache
from ghost_streak.services.catalog import (
    CachedRestrictionCatalog,
    RandomItemPool,
    RestrictionCatalog,
)
from ghost_streak.services.game_settings import SettingsAggregator
from ghost_streak.services.rounds import RoundService
from ghost_streak.services.sampler import RestrictionSampler
from ghost_streak.services.scoring import ScoreEngine
from ghost_streak.services.sessions import SessionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: SqlAlchemyChallengeStore
    catalog: RestrictionCatalog
    sampler: RestrictionSampler
    score_engine: ScoreEngine
    settings_aggregator: SettingsAggregator
    session_service: SessionService
    round_service: RoundService
    close_resources: Callable[[], None]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store = SqlAlchemyChallengeStore.create(
        resolved_settings.database_url,
        timeout_seconds=resolved_settings.database_timeout_seconds,
    )
    if resolved_settings.seed_catalog:
        seed_restrictions(store.session_factory)
    catalog = CachedRestrictionCatalog(
        source=SqlAlchemyRestrictionCatalog(store.session_factory),
        cache=InMemoryCache(),
        ttl_seconds=resolved_settings.catalog_cache_ttl_seconds,
    )
    rng = random.Random(resolved_settings.random_seed)
    sampler = RestrictionSampler(
        catalog=catalog,
        rng=rng,
        unlimited_weight=resolved_settings.unlimited_restriction_weight,
    )
    score_engine = ScoreEngine(catalog)
    session_service = SessionService(
        store=store,
        score_engine=score_engine,
        default_restrictions_per_round=resolved_settings.default_restrictions_per_round,
    )
    round_service = RoundService(
        store=store,
        catalog=catalog,
        sampler=sampler,
        item_pool=RandomItemPool(rng=rng),
        session_service=session_service,
    )

    def close_resources() -> None:
        store.close()

    return AppContainer(
        settings=resolved_settings,
        store=store,
        catalog=catalog,
        sampler=sampler,
        score_engine=score_engine,
        settings_aggregator=SettingsAggregator(store),
        session_service=session_service,
        round_service=round_service,
        close_resources=close_resources,
    )
