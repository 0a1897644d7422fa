"""Domain records for challenge sessions."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class ChallengeSession:
    """A leader-led attempt to win `goal` rounds in a row."""

    id: UUID
    guild_id: str
    goal: int
    restrictions_per_round: int
    started_at: datetime | None = None
    finished_at: datetime | None = None
    finished: bool = False
    successful_round_count: int = 0
    score: int | None = None

    @property
    def has_started(self) -> bool:
        return self.started_at is not None


@dataclass(frozen=True)
class SessionMember:
    """A user taking part in a session."""

    id: UUID
    session_id: UUID
    user_id: str
    is_leader: bool = False


@dataclass(frozen=True)
class SessionRound:
    """One attempt within a session; `won` is None until resolved."""

    id: UUID
    session_id: UUID
    started_by_id: UUID
    started_at: datetime
    won: bool | None = None
    ghost_type: str | None = None
    finished_at: datetime | None = None

    @property
    def is_resolved(self) -> bool:
        return self.won is not None


@dataclass(frozen=True)
class RestrictionInstance:
    """A restriction template applied to one round, placeholders resolved."""

    id: UUID
    session_id: UUID
    round_id: UUID
    restriction_id: str
    metadata: dict[str, object]
