"""Persistence ports shared by the challenge services."""

from collections.abc import Sequence
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Protocol
from uuid import UUID

from ghost_streak.domain.models import (
    ChallengeSession,
    RestrictionInstance,
    SessionMember,
    SessionRound,
)


class ChallengeRepository(Protocol):
    """Reads and writes bound to a single transaction."""

    def get_session(
        self, session_id: UUID, for_update: bool = False
    ) -> ChallengeSession | None:
        """Return a session by id, optionally locking it until commit."""

    def find_open_session_for_user(
        self, guild_id: str, user_id: str
    ) -> ChallengeSession | None:
        """Return the unfinished session the user belongs to in a guild."""

    def lock_user(self, guild_id: str, user_id: str) -> None:
        """Hold the user's membership guard in a guild until commit.

        Every command that checks the one-open-session rule takes this lock
        first, so two such commands for the same user run one after another.
        """

    def create_session(
        self, guild_id: str, goal: int, restrictions_per_round: int
    ) -> ChallengeSession:
        """Create and return a new session."""

    def update_session(self, session: ChallengeSession) -> None:
        """Persist the mutable fields of a session."""

    def list_members(self, session_id: UUID) -> list[SessionMember]:
        """Return members of a session."""

    def add_member(
        self, session_id: UUID, user_id: str, is_leader: bool
    ) -> SessionMember:
        """Add a member to a session and return it."""

    def delete_member(self, member_id: UUID) -> None:
        """Remove a member row."""

    def list_rounds(self, session_id: UUID) -> list[SessionRound]:
        """Return rounds of a session ordered by start time."""

    def create_round(
        self, session_id: UUID, started_by_id: UUID, started_at: datetime
    ) -> SessionRound:
        """Create an unresolved round and return it."""

    def update_round(self, session_round: SessionRound) -> None:
        """Persist the resolution fields of a round."""

    def list_restriction_instances(
        self, session_id: UUID
    ) -> list[RestrictionInstance]:
        """Return every restriction instance recorded for a session."""

    def create_restriction_instances(
        self,
        session_id: UUID,
        round_id: UUID,
        picks: Sequence[tuple[str, dict[str, object]]],
    ) -> list[RestrictionInstance]:
        """Create instances from (restriction id, resolved metadata) pairs."""


class ChallengeStore(Protocol):
    """Factory for transactional units of work."""

    def transaction(self) -> AbstractContextManager[ChallengeRepository]:
        """Open a transaction; commit on exit, roll back on any exception."""
