"""Shared test fixtures."""

import copy
import random
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from ghost_streak.config import Settings
from ghost_streak.domain.models import (
    ChallengeSession,
    RestrictionInstance,
    SessionMember,
    SessionRound,
)
from ghost_streak.domain.restrictions import RestrictionTemplate
from ghost_streak.services.catalog import ItemPool, StaticRestrictionCatalog
from ghost_streak.services.repository import ChallengeRepository, ChallengeStore
from ghost_streak.services.rounds import RoundService
from ghost_streak.services.sampler import RestrictionSampler
from ghost_streak.services.scoring import ScoreEngine
from ghost_streak.services.sessions import SessionService

GUILD_ID = "guild-1"
LEADER_ID = "user-leader"

TEST_TEMPLATES = (
    RestrictionTemplate("blackout", 1, 5, {"breaker": False}),
    RestrictionTemplate("shy_ghost", 2, 3, {"evidence": -1}),
    RestrictionTemplate("forgotten_item", 3, 1, {"forgottenItem": 1}),
    RestrictionTemplate("endless_night", None, 2, {"sanity": -10}),
)


@dataclass
class InMemoryChallengeState:
    sessions: dict[UUID, ChallengeSession] = field(default_factory=dict)
    members: dict[UUID, SessionMember] = field(default_factory=dict)
    rounds: dict[UUID, SessionRound] = field(default_factory=dict)
    instances: list[RestrictionInstance] = field(default_factory=list)


@dataclass
class InMemoryChallengeRepository(ChallengeRepository):
    """In-memory repository for tests."""

    state: InMemoryChallengeState
    locked: list[UUID] = field(default_factory=list)
    locked_users: list[tuple[str, str]] = field(default_factory=list)

    def get_session(
        self, session_id: UUID, for_update: bool = False
    ) -> ChallengeSession | None:
        if for_update:
            self.locked.append(session_id)
        return self.state.sessions.get(session_id)

    def lock_user(self, guild_id: str, user_id: str) -> None:
        self.locked_users.append((guild_id, user_id))

    def find_open_session_for_user(
        self, guild_id: str, user_id: str
    ) -> ChallengeSession | None:
        for member in self.state.members.values():
            session = self.state.sessions[member.session_id]
            if (
                member.user_id == user_id
                and session.guild_id == guild_id
                and not session.finished
            ):
                return session
        return None

    def create_session(
        self, guild_id: str, goal: int, restrictions_per_round: int
    ) -> ChallengeSession:
        session = ChallengeSession(
            id=uuid4(),
            guild_id=guild_id,
            goal=goal,
            restrictions_per_round=restrictions_per_round,
        )
        self.state.sessions[session.id] = session
        return session

    def update_session(self, session: ChallengeSession) -> None:
        self.state.sessions[session.id] = session

    def list_members(self, session_id: UUID) -> list[SessionMember]:
        return [m for m in self.state.members.values() if m.session_id == session_id]

    def add_member(
        self, session_id: UUID, user_id: str, is_leader: bool
    ) -> SessionMember:
        member = SessionMember(
            id=uuid4(), session_id=session_id, user_id=user_id, is_leader=is_leader
        )
        self.state.members[member.id] = member
        return member

    def delete_member(self, member_id: UUID) -> None:
        self.state.members.pop(member_id, None)

    def list_rounds(self, session_id: UUID) -> list[SessionRound]:
        return [r for r in self.state.rounds.values() if r.session_id == session_id]

    def create_round(
        self, session_id: UUID, started_by_id: UUID, started_at: datetime
    ) -> SessionRound:
        session_round = SessionRound(
            id=uuid4(),
            session_id=session_id,
            started_by_id=started_by_id,
            started_at=started_at,
        )
        self.state.rounds[session_round.id] = session_round
        return session_round

    def update_round(self, session_round: SessionRound) -> None:
        self.state.rounds[session_round.id] = session_round

    def list_restriction_instances(
        self, session_id: UUID
    ) -> list[RestrictionInstance]:
        return [i for i in self.state.instances if i.session_id == session_id]

    def create_restriction_instances(
        self,
        session_id: UUID,
        round_id: UUID,
        picks: Sequence[tuple[str, dict[str, object]]],
    ) -> list[RestrictionInstance]:
        created = [
            RestrictionInstance(
                id=uuid4(),
                session_id=session_id,
                round_id=round_id,
                restriction_id=restriction_id,
                metadata=metadata,
            )
            for restriction_id, metadata in picks
        ]
        self.state.instances.extend(created)
        return created


@dataclass
class InMemoryChallengeStore(ChallengeStore):
    """Serialized in-memory store that restores its state on rollback.

    Locks taken by any transaction are recorded in `locked` (session ids) and
    `locked_users` (guild and user pairs).
    """

    state: InMemoryChallengeState = field(default_factory=InMemoryChallengeState)
    repository_factory: type[InMemoryChallengeRepository] = InMemoryChallengeRepository
    commits: int = 0
    rollbacks: int = 0
    locked: list[UUID] = field(default_factory=list)
    locked_users: list[tuple[str, str]] = field(default_factory=list)
    _lock: threading.RLock = field(default_factory=threading.RLock)

    @contextmanager
    def transaction(self) -> Iterator[ChallengeRepository]:
        with self._lock:
            snapshot = copy.deepcopy(self.state)
            try:
                yield self.repository_factory(
                    self.state, self.locked, self.locked_users
                )
            except Exception:
                self.state.__dict__.update(snapshot.__dict__)
                self.rollbacks += 1
                raise
            self.commits += 1


class ScriptedRandom:
    """Random source replaying fixed draws; shuffle keeps order."""

    def __init__(self, values: Sequence[float] = ()) -> None:
        self.values = list(values)

    def random(self) -> float:
        return self.values.pop(0)

    def shuffle(self, x: list) -> None:
        return None


@dataclass
class FixedItemPool(ItemPool):
    """Item pool that hands out items in order."""

    items: list[str] = field(default_factory=lambda: ["salt", "crucifix", "tripod"])
    drawn: int = 0

    def random_item(self) -> str:
        item = self.items[self.drawn % len(self.items)]
        self.drawn += 1
        return item


@dataclass
class FakeClock:
    """Clock advancing one minute per call."""

    current: datetime = field(
        default_factory=lambda: datetime(2026, 1, 1, 20, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


@dataclass
class ChallengeServices:
    store: InMemoryChallengeStore
    catalog: StaticRestrictionCatalog
    sampler: RestrictionSampler
    item_pool: FixedItemPool
    sessions: SessionService
    rounds: RoundService


def build_services(
    store: InMemoryChallengeStore | None = None,
    templates: Sequence[RestrictionTemplate] = TEST_TEMPLATES,
    rng: random.Random | ScriptedRandom | None = None,
) -> ChallengeServices:
    resolved_store = store or InMemoryChallengeStore()
    catalog = StaticRestrictionCatalog(templates)
    sampler = RestrictionSampler(catalog=catalog, rng=rng or random.Random(1234))
    item_pool = FixedItemPool()
    clock = FakeClock()
    sessions = SessionService(
        store=resolved_store, score_engine=ScoreEngine(catalog), clock=clock
    )
    rounds = RoundService(
        store=resolved_store,
        catalog=catalog,
        sampler=sampler,
        item_pool=item_pool,
        session_service=sessions,
        clock=clock,
    )
    return ChallengeServices(
        store=resolved_store,
        catalog=catalog,
        sampler=sampler,
        item_pool=item_pool,
        sessions=sessions,
        rounds=rounds,
    )


def make_instance(
    restriction_id: str,
    round_id: UUID | None = None,
    session_id: UUID | None = None,
    metadata: dict[str, object] | None = None,
) -> RestrictionInstance:
    return RestrictionInstance(
        id=uuid4(),
        session_id=session_id or uuid4(),
        round_id=round_id or uuid4(),
        restriction_id=restriction_id,
        metadata=metadata or {},
    )


def make_round(session_id: UUID, won: bool | None) -> SessionRound:
    session_round = SessionRound(
        id=uuid4(),
        session_id=session_id,
        started_by_id=uuid4(),
        started_at=datetime(2026, 1, 1, tzinfo=UTC),
    )
    if won is None:
        return session_round
    return replace(session_round, won=won, ghost_type="spirit")


@pytest.fixture
def services() -> ChallengeServices:
    return build_services()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'ghost_streak.db'}",
        random_seed=42,
    )
