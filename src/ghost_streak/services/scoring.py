"""Final score computation for finished sessions."""

import logging
import math
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from ghost_streak.domain.models import (
    ChallengeSession,
    RestrictionInstance,
    SessionRound,
)
from ghost_streak.domain.scoring import ScoreSummary
from ghost_streak.services.catalog import RestrictionCatalog

_logger = logging.getLogger(__name__)

POINTS_PER_WIN = 2
DIFFICULTY_MULTIPLIER = 3
GOAL_MULTIPLIER = 2.0


@dataclass
class ScoreEngine:
    """Convert round outcomes and restriction scores into a session score."""

    catalog: RestrictionCatalog

    def compute_final_score(
        self,
        session: ChallengeSession,
        rounds: Iterable[SessionRound],
        instances: Iterable[RestrictionInstance],
    ) -> ScoreSummary:
        """Score a session from its resolved rounds.

        Only restrictions attached to won rounds count, matched by round id
        and then by template id.
        """
        resolved = [r for r in rounds if r.is_resolved]
        won_round_ids = {r.id for r in resolved if r.won}
        successful = len(won_round_ids)

        restriction_score = self._restriction_score(won_round_ids, instances)
        goal_reached = successful >= session.goal
        completion_multiplier = GOAL_MULTIPLIER if goal_reached else 1.0
        total_rounds = max(1, len(resolved))
        efficiency_rate = successful / total_rounds

        raw = (
            POINTS_PER_WIN * successful * completion_multiplier
            + restriction_score * DIFFICULTY_MULTIPLIER
        ) * efficiency_rate
        return ScoreSummary(
            final_score=_round_half_up(raw),
            successful_rounds=successful,
            total_rounds=total_rounds,
            goal_reached=goal_reached,
            restriction_score=restriction_score,
        )

    def _restriction_score(
        self, won_round_ids: set[UUID], instances: Iterable[RestrictionInstance]
    ) -> int:
        scores = {t.id: t.score for t in self.catalog.list_templates()}
        per_round: dict[UUID, int] = defaultdict(int)
        for instance in instances:
            if instance.round_id not in won_round_ids:
                continue
            score = scores.get(instance.restriction_id)
            if score is None:
                _logger.warning(
                    "Restriction missing from catalog: restriction_id=%s",
                    instance.restriction_id,
                )
                continue
            per_round[instance.round_id] += score
        return sum(per_round.values())


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
