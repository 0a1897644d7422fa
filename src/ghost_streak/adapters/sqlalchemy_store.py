"""SQLAlchemy-backed challenge store."""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import Engine, create_engine, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ghost_streak.adapters.sqlalchemy_tables import (
    Base,
    MembershipGuardRow,
    SessionMemberRow,
    SessionRestrictionRow,
    SessionRoundRow,
    SessionRow,
)
from ghost_streak.domain.errors import InfrastructureFailure
from ghost_streak.domain.models import (
    ChallengeSession,
    RestrictionInstance,
    SessionMember,
    SessionRound,
)
from ghost_streak.services.repository import ChallengeRepository, ChallengeStore

_logger = logging.getLogger(__name__)

_GUARD_INSERTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


def create_database_engine(database_url: str, timeout_seconds: float = 10.0) -> Engine:
    """Create an engine whose connects and lock waits are bounded."""
    engine_args: dict[str, object] = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        # SQLite connections are shared across threads by the pool.
        connect_args: dict[str, object] = {
            "check_same_thread": False,
            "timeout": timeout_seconds,
        }
    else:
        connect_args = {"connect_timeout": max(1, int(timeout_seconds))}
        engine_args["pool_timeout"] = timeout_seconds
    return create_engine(database_url, connect_args=connect_args, **engine_args)


@dataclass
class SqlAlchemyChallengeRepository(ChallengeRepository):
    """Repository operating inside one SQLAlchemy session."""

    db: Session

    def get_session(
        self, session_id: UUID, for_update: bool = False
    ) -> ChallengeSession | None:
        stmt = select(SessionRow).where(SessionRow.id == session_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = self.db.execute(stmt).scalars().first()
        return _to_session(row) if row else None

    def find_open_session_for_user(
        self, guild_id: str, user_id: str
    ) -> ChallengeSession | None:
        stmt = (
            select(SessionRow)
            .join(SessionMemberRow, SessionMemberRow.session_id == SessionRow.id)
            .where(
                SessionRow.guild_id == guild_id,
                SessionRow.finished.is_(False),
                SessionMemberRow.user_id == user_id,
            )
            .order_by(SessionRow.created_at.desc())
            .limit(1)
        )
        row = self.db.execute(stmt).scalars().first()
        return _to_session(row) if row else None

    def lock_user(self, guild_id: str, user_id: str) -> None:
        insert = _GUARD_INSERTS.get(self.db.get_bind().dialect.name)
        if insert is not None:
            # Waits on a concurrent insert of the same key, then does nothing.
            self.db.execute(
                insert(MembershipGuardRow)
                .values(guild_id=guild_id, user_id=user_id)
                .on_conflict_do_nothing()
            )
        elif self.db.get(MembershipGuardRow, (guild_id, user_id)) is None:
            self.db.add(MembershipGuardRow(guild_id=guild_id, user_id=user_id))
            self.db.flush()
        stmt = (
            select(MembershipGuardRow)
            .where(
                MembershipGuardRow.guild_id == guild_id,
                MembershipGuardRow.user_id == user_id,
            )
            .with_for_update()
        )
        self.db.execute(stmt).scalars().one()

    def create_session(
        self, guild_id: str, goal: int, restrictions_per_round: int
    ) -> ChallengeSession:
        row = SessionRow(
            guild_id=guild_id,
            goal=goal,
            restrictions_per_round=restrictions_per_round,
            successful_rounds=0,
            finished=False,
        )
        self.db.add(row)
        self.db.flush()
        return _to_session(row)

    def update_session(self, session: ChallengeSession) -> None:
        row = self.db.get(SessionRow, session.id)
        if row is None:
            raise RuntimeError(f"Session {session.id} vanished during update")
        row.started_at = session.started_at
        row.finished_at = session.finished_at
        row.finished = session.finished
        row.successful_rounds = session.successful_round_count
        row.score = session.score
        self.db.flush()

    def list_members(self, session_id: UUID) -> list[SessionMember]:
        stmt = select(SessionMemberRow).where(SessionMemberRow.session_id == session_id)
        return [_to_member(row) for row in self.db.execute(stmt).scalars()]

    def add_member(
        self, session_id: UUID, user_id: str, is_leader: bool
    ) -> SessionMember:
        row = SessionMemberRow(
            session_id=session_id, user_id=user_id, is_leader=is_leader
        )
        self.db.add(row)
        self.db.flush()
        return _to_member(row)

    def delete_member(self, member_id: UUID) -> None:
        row = self.db.get(SessionMemberRow, member_id)
        if row is not None:
            self.db.delete(row)
            self.db.flush()

    def list_rounds(self, session_id: UUID) -> list[SessionRound]:
        stmt = (
            select(SessionRoundRow)
            .where(SessionRoundRow.session_id == session_id)
            .order_by(SessionRoundRow.started_at)
        )
        return [_to_round(row) for row in self.db.execute(stmt).scalars()]

    def create_round(
        self, session_id: UUID, started_by_id: UUID, started_at: datetime
    ) -> SessionRound:
        row = SessionRoundRow(
            session_id=session_id,
            started_by_id=started_by_id,
            started_at=started_at,
        )
        self.db.add(row)
        self.db.flush()
        return _to_round(row)

    def update_round(self, session_round: SessionRound) -> None:
        row = self.db.get(SessionRoundRow, session_round.id)
        if row is None:
            raise RuntimeError(f"Round {session_round.id} vanished during update")
        row.won = session_round.won
        row.ghost_type = session_round.ghost_type
        row.finished_at = session_round.finished_at
        self.db.flush()

    def list_restriction_instances(
        self, session_id: UUID
    ) -> list[RestrictionInstance]:
        stmt = (
            select(SessionRestrictionRow)
            .where(SessionRestrictionRow.session_id == session_id)
            .order_by(SessionRestrictionRow.created_at)
        )
        return [_to_instance(row) for row in self.db.execute(stmt).scalars()]

    def create_restriction_instances(
        self,
        session_id: UUID,
        round_id: UUID,
        picks: Sequence[tuple[str, dict[str, object]]],
    ) -> list[RestrictionInstance]:
        rows = [
            SessionRestrictionRow(
                session_id=session_id,
                round_id=round_id,
                restriction_id=restriction_id,
                effect_metadata=metadata,
            )
            for restriction_id, metadata in picks
        ]
        self.db.add_all(rows)
        self.db.flush()
        return [_to_instance(row) for row in rows]


@dataclass
class SqlAlchemyChallengeStore(ChallengeStore):
    """Hands out one repository per database transaction."""

    engine: Engine
    session_factory: sessionmaker[Session] = field(init=False)

    def __post_init__(self) -> None:
        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=True, expire_on_commit=False
        )

    @classmethod
    def create(
        cls, database_url: str, timeout_seconds: float = 10.0
    ) -> "SqlAlchemyChallengeStore":
        """Build a store and create any missing tables."""
        engine = create_database_engine(database_url, timeout_seconds)
        Base.metadata.create_all(engine)
        return cls(engine)

    @contextmanager
    def transaction(self) -> Iterator[ChallengeRepository]:
        db = self.session_factory()
        try:
            yield SqlAlchemyChallengeRepository(db)
            db.commit()
        except SQLAlchemyError as exc:
            _logger.error("Challenge transaction failed: %s", exc, exc_info=True)
            db.rollback()
            raise InfrastructureFailure(str(exc)) from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def close(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()


def _to_session(row: SessionRow) -> ChallengeSession:
    return ChallengeSession(
        id=row.id,
        guild_id=row.guild_id,
        goal=row.goal,
        restrictions_per_round=row.restrictions_per_round,
        started_at=row.started_at,
        finished_at=row.finished_at,
        finished=row.finished,
        successful_round_count=row.successful_rounds,
        score=row.score,
    )


def _to_member(row: SessionMemberRow) -> SessionMember:
    return SessionMember(
        id=row.id,
        session_id=row.session_id,
        user_id=row.user_id,
        is_leader=row.is_leader,
    )


def _to_round(row: SessionRoundRow) -> SessionRound:
    return SessionRound(
        id=row.id,
        session_id=row.session_id,
        started_by_id=row.started_by_id,
        started_at=row.started_at,
        won=row.won,
        ghost_type=row.ghost_type,
        finished_at=row.finished_at,
    )


def _to_instance(row: SessionRestrictionRow) -> RestrictionInstance:
    return RestrictionInstance(
        id=row.id,
        session_id=row.session_id,
        round_id=row.round_id,
        restriction_id=row.restriction_id,
        metadata=dict(row.effect_metadata or {}),
    )
