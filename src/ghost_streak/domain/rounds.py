"""Domain models returned by round operations."""

from dataclasses import dataclass

from ghost_streak.domain.models import (
    ChallengeSession,
    RestrictionInstance,
    SessionMember,
    SessionRound,
)
from ghost_streak.domain.scoring import ScoreSummary


@dataclass(frozen=True)
class RoundStart:
    """A newly started round and the restrictions drawn for it."""

    round: SessionRound
    instances: list[RestrictionInstance]


@dataclass(frozen=True)
class SessionOutcome:
    """Final state of a session that just terminated."""

    session: ChallengeSession
    score: ScoreSummary
    members: list[SessionMember]

    @property
    def won(self) -> bool:
        return self.score.goal_reached


@dataclass(frozen=True)
class RoundResult:
    """Outcome of resolving a round.

    `outcome` is set only when the resolution ended the session.
    """

    round: SessionRound
    session: ChallengeSession
    outcome: SessionOutcome | None = None

    @property
    def session_finished(self) -> bool:
        return self.outcome is not None
