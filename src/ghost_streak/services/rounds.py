"""Round lifecycle: drawing restrictions and resolving outcomes."""

import copy
import logging
from collections.abc import Callable, Collection
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID

from ghost_streak.domain.errors import (
    InvalidGhostType,
    NoActiveRound,
    RoundAlreadyActive,
    SessionNotFound,
)
from ghost_streak.domain.models import RestrictionInstance
from ghost_streak.domain.restrictions import (
    GHOST_TYPES,
    ITEM_PLACEHOLDER_KEYS,
    RestrictionTemplate,
)
from ghost_streak.domain.rounds import RoundResult, RoundStart
from ghost_streak.services.catalog import ItemPool, RestrictionCatalog
from ghost_streak.services.repository import ChallengeStore
from ghost_streak.services.sampler import RestrictionSampler
from ghost_streak.services.sessions import (
    SessionService,
    require_member,
    require_open_session,
)

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class RoundService:
    """Start and resolve rounds of a session."""

    store: ChallengeStore
    catalog: RestrictionCatalog
    sampler: RestrictionSampler
    item_pool: ItemPool
    session_service: SessionService
    ghost_types: Collection[str] = GHOST_TYPES
    clock: Callable[[], datetime] = field(default=_utcnow)

    def start_round(self, session_id: UUID, user_id: str) -> RoundStart:
        """Start a round and attach freshly drawn restrictions to it."""
        with self.store.transaction() as repository:
            session = require_open_session(repository, session_id)
            member = require_member(repository, session_id, user_id)
            if any(not r.is_resolved for r in repository.list_rounds(session_id)):
                raise RoundAlreadyActive()

            # One catalog read per round; sampling and metadata use the same view.
            snapshot = self.catalog.list_templates()
            templates = {template.id: template for template in snapshot}
            history = repository.list_restriction_instances(session_id)
            selected = self.sampler.select_restrictions(
                history, session.restrictions_per_round, snapshot
            )

            now = self.clock()
            session_round = repository.create_round(session_id, member.id, now)
            instances = repository.create_restriction_instances(
                session_id,
                session_round.id,
                [
                    (restriction_id, self._resolve_metadata(templates[restriction_id]))
                    for restriction_id in selected
                ],
            )
            if not session.has_started:
                repository.update_session(replace(session, started_at=now))

        _logger.info(
            "Round started: session_id=%s round_id=%s restrictions=%s",
            session_id,
            session_round.id,
            ",".join(selected),
        )
        return RoundStart(round=session_round, instances=instances)

    def resolve_round(
        self, session_id: UUID, user_id: str, won: bool, ghost_type: str
    ) -> RoundResult:
        """Record the outcome of the active round and check for session end."""
        if ghost_type not in self.ghost_types:
            raise InvalidGhostType(ghost_type)

        with self.store.transaction() as repository:
            session = require_open_session(repository, session_id)
            require_member(repository, session_id, user_id)
            active = next(
                (r for r in repository.list_rounds(session_id) if not r.is_resolved),
                None,
            )
            if active is None:
                raise NoActiveRound()

            resolved = replace(
                active, won=won, ghost_type=ghost_type, finished_at=self.clock()
            )
            repository.update_round(resolved)
            if won:
                session = replace(
                    session, successful_round_count=session.successful_round_count + 1
                )
                repository.update_session(session)

            outcome = self.session_service.evaluate_termination(repository, session)

        _logger.info(
            "Round resolved: session_id=%s round_id=%s won=%s ghost=%s",
            session_id,
            resolved.id,
            won,
            ghost_type,
        )
        return RoundResult(
            round=resolved,
            session=outcome.session if outcome else session,
            outcome=outcome,
        )

    def list_restriction_history(self, session_id: UUID) -> list[RestrictionInstance]:
        """Return every restriction instance added to a session so far."""
        with self.store.transaction() as repository:
            if repository.get_session(session_id) is None:
                raise SessionNotFound(session_id)
            return repository.list_restriction_instances(session_id)

    def _resolve_metadata(self, template: RestrictionTemplate) -> dict[str, object]:
        metadata = copy.deepcopy(template.metadata)
        for key in ITEM_PLACEHOLDER_KEYS:
            value = metadata.get(key)
            if isinstance(value, int | float) and not isinstance(value, bool) and value:
                metadata[key] = self.item_pool.random_item()
        return metadata
