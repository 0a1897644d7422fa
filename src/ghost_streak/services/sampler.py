"""Weighted restriction sampling with per-session occurrence caps."""

import logging
import random
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from ghost_streak.domain.errors import NoRestrictionsAvailable, PoolExhausted
from ghost_streak.domain.models import RestrictionInstance
from ghost_streak.domain.restrictions import RestrictionTemplate
from ghost_streak.services.catalog import RestrictionCatalog

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeightedEntry:
    """A pool entry eligible for drawing."""

    restriction_id: str
    weight: int


@dataclass
class RestrictionSampler:
    """Draw restriction ids for a new round.

    Each template's weight is its remaining allowance in the session, so
    templates close to their cap become rarer. Templates without a cap start
    at `unlimited_weight` and lose one point per use, but never drop below 1.
    """

    catalog: RestrictionCatalog
    rng: random.Random = field(default_factory=random.Random)
    unlimited_weight: int = 3

    def build_pool(
        self,
        history: Iterable[RestrictionInstance],
        templates: Sequence[RestrictionTemplate] | None = None,
    ) -> list[WeightedEntry]:
        """Return the eligible templates with their weights.

        `templates` is a catalog snapshot already read by the caller; the
        catalog is consulted only when it is omitted. Raises
        NoRestrictionsAvailable for an empty catalog and PoolExhausted when
        every template has reached its cap.
        """
        if templates is None:
            templates = self.catalog.list_templates()
        if not templates:
            raise NoRestrictionsAvailable()

        usage = Counter(instance.restriction_id for instance in history)
        pool = [
            WeightedEntry(template.id, self._weight(template, usage[template.id]))
            for template in templates
        ]
        pool = [entry for entry in pool if entry.weight > 0]
        if not pool:
            raise PoolExhausted()
        return pool

    def select_restrictions(
        self,
        history: Iterable[RestrictionInstance],
        desired_count: int,
        templates: Sequence[RestrictionTemplate] | None = None,
    ) -> list[str]:
        """Draw up to `desired_count` distinct restriction ids.

        A draw that lands on an already picked template walks on to the next
        unpicked entry with the same roll; if none is left the draw yields
        nothing, so fewer than `desired_count` ids may be returned.
        """
        pool = self.build_pool(history, templates)
        self.rng.shuffle(pool)
        total_weight = sum(entry.weight for entry in pool)

        selected: list[str] = []
        for _ in range(desired_count):
            roll = self.rng.random() * total_weight
            for entry in pool:
                roll -= entry.weight
                if roll <= 0 and entry.restriction_id not in selected:
                    selected.append(entry.restriction_id)
                    break

        if len(selected) < desired_count:
            _logger.info(
                "Sampler returned fewer restrictions: requested=%s selected=%s",
                desired_count,
                len(selected),
            )
        return selected

    def _weight(self, template: RestrictionTemplate, used: int) -> int:
        if template.occurrence_cap is None:
            return max(1, self.unlimited_weight - used)
        return max(0, template.occurrence_cap - used)
