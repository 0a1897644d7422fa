"""SQLAlchemy table mappings for challenge persistence."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class Base(DeclarativeBase):
    pass


class RestrictionRow(Base):
    __tablename__ = "restrictions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    occurrences: Mapped[int | None]
    score: Mapped[int] = mapped_column(default=0)
    effect_metadata: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    added_by: Mapped[str | None] = mapped_column(String(64))
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )


class SessionRow(Base):
    __tablename__ = "sessions"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    guild_id: Mapped[str] = mapped_column(String(64), index=True)
    goal: Mapped[int]
    restrictions_per_round: Mapped[int]
    successful_rounds: Mapped[int] = mapped_column(default=0)
    score: Mapped[int | None]
    finished: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class SessionMemberRow(Base):
    __tablename__ = "session_members"
    __table_args__ = (UniqueConstraint("session_id", "user_id"),)

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    session_id: Mapped[UUID] = mapped_column(
        ForeignKey("sessions.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    is_leader: Mapped[bool] = mapped_column(Boolean, default=False)


class SessionRoundRow(Base):
    __tablename__ = "session_rounds"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    session_id: Mapped[UUID] = mapped_column(
        ForeignKey("sessions.id", ondelete="CASCADE"), index=True
    )
    started_by_id: Mapped[UUID] = mapped_column(ForeignKey("session_members.id"))
    won: Mapped[bool | None] = mapped_column(Boolean)
    ghost_type: Mapped[str | None] = mapped_column(String(32))
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class SessionRestrictionRow(Base):
    __tablename__ = "session_restrictions"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    session_id: Mapped[UUID] = mapped_column(
        ForeignKey("sessions.id", ondelete="CASCADE"), index=True
    )
    round_id: Mapped[UUID] = mapped_column(
        ForeignKey("session_rounds.id", ondelete="CASCADE"), index=True
    )
    restriction_id: Mapped[str] = mapped_column(String(64))
    effect_metadata: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )


class MembershipGuardRow(Base):
    """One row per (guild, user); locked while membership is checked."""

    __tablename__ = "membership_guards"

    guild_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
