"""Restriction catalog and item pool ports."""

import random
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from ghost_streak.domain.restrictions import (
    DEFAULT_RESTRICTIONS,
    GAME_ITEMS,
    RestrictionTemplate,
)
from ghost_streak.services.cache import Cache

_TEMPLATES_KEY = "restriction_templates"


class RestrictionCatalog(Protocol):
    """Read-only access to restriction templates."""

    def list_templates(self) -> list[RestrictionTemplate]:
        """Return every restriction template."""


class ItemPool(Protocol):
    """Source of concrete items for placeholder substitution."""

    def random_item(self) -> str:
        """Return one item drawn at random."""


@dataclass
class StaticRestrictionCatalog(RestrictionCatalog):
    """Catalog backed by an in-process list."""

    templates: Sequence[RestrictionTemplate] = DEFAULT_RESTRICTIONS

    def list_templates(self) -> list[RestrictionTemplate]:
        return list(self.templates)


@dataclass
class CachedRestrictionCatalog(RestrictionCatalog):
    """Serve templates from a cache, refreshing from the source on expiry."""

    source: RestrictionCatalog
    cache: Cache
    ttl_seconds: int = 60

    def list_templates(self) -> list[RestrictionTemplate]:
        cached = self.cache.get(_TEMPLATES_KEY)
        if isinstance(cached, list):
            return list(cached)
        templates = self.source.list_templates()
        self.cache.set(_TEMPLATES_KEY, templates, self.ttl_seconds)
        return list(templates)

    def invalidate(self) -> None:
        """Force the next read to hit the source catalog."""
        self.cache.delete(_TEMPLATES_KEY)


@dataclass
class RandomItemPool(ItemPool):
    """Uniform draw over a fixed item list."""

    items: Sequence[str] = GAME_ITEMS
    rng: random.Random = field(default_factory=random.Random)

    def random_item(self) -> str:
        if not self.items:
            raise ValueError("Item pool is empty")
        return self.rng.choice(list(self.items))
