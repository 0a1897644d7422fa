"""Session lifecycle: membership, termination and final scoring."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID

from ghost_streak.domain.errors import (
    AlreadyInSession,
    InvalidSessionParameters,
    LeaderCannotBeRemoved,
    NotLeader,
    SessionAlreadyFinished,
    SessionAlreadyStarted,
    SessionNotFound,
    UserNotInSession,
)
from ghost_streak.domain.models import ChallengeSession, SessionMember
from ghost_streak.domain.rounds import SessionOutcome
from ghost_streak.services.repository import ChallengeRepository, ChallengeStore
from ghost_streak.services.scoring import ScoreEngine

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def require_open_session(
    repository: ChallengeRepository, session_id: UUID
) -> ChallengeSession:
    """Lock a session for the rest of the transaction and check it is open."""
    session = repository.get_session(session_id, for_update=True)
    if session is None:
        raise SessionNotFound(session_id)
    if session.finished:
        raise SessionAlreadyFinished(session_id)
    return session


def require_member(
    repository: ChallengeRepository, session_id: UUID, user_id: str
) -> SessionMember:
    for member in repository.list_members(session_id):
        if member.user_id == user_id:
            return member
    raise UserNotInSession(user_id)


@dataclass
class SessionService:
    """State machine for a session: open, then active, then finished."""

    store: ChallengeStore
    score_engine: ScoreEngine
    default_restrictions_per_round: int = 2
    clock: Callable[[], datetime] = field(default=_utcnow)

    def create_session(
        self,
        guild_id: str,
        leader_user_id: str,
        goal: int,
        restrictions_per_round: int | None = None,
    ) -> ChallengeSession:
        """Create a session led by `leader_user_id`."""
        per_round = (
            self.default_restrictions_per_round
            if restrictions_per_round is None
            else restrictions_per_round
        )
        if goal < 1 or per_round < 1:
            raise InvalidSessionParameters(
                "Goal and restrictions per round must be at least 1"
            )

        with self.store.transaction() as repository:
            repository.lock_user(guild_id, leader_user_id)
            existing = repository.find_open_session_for_user(guild_id, leader_user_id)
            if existing is not None:
                raise AlreadyInSession(leader_user_id, existing.id)
            session = repository.create_session(guild_id, goal, per_round)
            repository.add_member(session.id, leader_user_id, is_leader=True)

        _logger.info(
            "Session created: session_id=%s guild_id=%s goal=%s per_round=%s",
            session.id,
            guild_id,
            goal,
            per_round,
        )
        return session

    def invite_member(
        self, session_id: UUID, actor_user_id: str, user_id: str
    ) -> SessionMember:
        """Add a user to a session that has not started yet."""
        with self.store.transaction() as repository:
            session = self._require_editable(repository, session_id, actor_user_id)
            repository.lock_user(session.guild_id, user_id)
            existing = repository.find_open_session_for_user(session.guild_id, user_id)
            if existing is not None:
                raise AlreadyInSession(user_id, existing.id)
            return repository.add_member(session_id, user_id, is_leader=False)

    def remove_member(
        self, session_id: UUID, actor_user_id: str, user_id: str
    ) -> None:
        """Remove a non-leader user from a session that has not started yet."""
        with self.store.transaction() as repository:
            self._require_editable(repository, session_id, actor_user_id)
            member = require_member(repository, session_id, user_id)
            if member.is_leader:
                raise LeaderCannotBeRemoved()
            repository.delete_member(member.id)

    def list_members(self, session_id: UUID) -> list[SessionMember]:
        """Return session members, leader first."""
        with self.store.transaction() as repository:
            if repository.get_session(session_id) is None:
                raise SessionNotFound(session_id)
            members = repository.list_members(session_id)
        return sorted(members, key=lambda member: not member.is_leader)

    def get_session(self, session_id: UUID) -> ChallengeSession:
        with self.store.transaction() as repository:
            session = repository.get_session(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def find_open_session(self, guild_id: str, user_id: str) -> ChallengeSession | None:
        """Return the unfinished session a user belongs to, if any."""
        with self.store.transaction() as repository:
            return repository.find_open_session_for_user(guild_id, user_id)

    def evaluate_termination(
        self, repository: ChallengeRepository, session: ChallengeSession
    ) -> SessionOutcome | None:
        """Finish the session if the goal was reached or a round was lost.

        Runs inside the caller's transaction so the resolution, the finish
        flag and the score are committed together.
        """
        rounds = repository.list_rounds(session.id)
        resolved = [r for r in rounds if r.is_resolved]
        wins = sum(1 for r in resolved if r.won)
        if wins == len(resolved) and wins < session.goal:
            return None

        instances = repository.list_restriction_instances(session.id)
        score = self.score_engine.compute_final_score(session, rounds, instances)
        finished = replace(
            session,
            finished=True,
            finished_at=self.clock(),
            score=score.final_score,
            successful_round_count=score.successful_rounds,
        )
        repository.update_session(finished)
        members = repository.list_members(session.id)

        _logger.info(
            "Session finished: session_id=%s won=%s score=%s rounds=%s/%s",
            session.id,
            score.goal_reached,
            score.final_score,
            score.successful_rounds,
            score.total_rounds,
        )
        return SessionOutcome(
            session=finished,
            score=score,
            members=sorted(members, key=lambda member: not member.is_leader),
        )

    def _require_editable(
        self, repository: ChallengeRepository, session_id: UUID, actor_user_id: str
    ) -> ChallengeSession:
        session = require_open_session(repository, session_id)
        leader = next(
            (m for m in repository.list_members(session_id) if m.is_leader), None
        )
        if leader is None or leader.user_id != actor_user_id:
            raise NotLeader(actor_user_id)
        if session.has_started:
            raise SessionAlreadyStarted(session_id)
        return session
