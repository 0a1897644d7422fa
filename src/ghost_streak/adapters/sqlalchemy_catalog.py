"""SQLAlchemy-backed restriction catalog."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from ghost_streak.adapters.sqlalchemy_tables import RestrictionRow
from ghost_streak.domain.restrictions import DEFAULT_RESTRICTIONS, RestrictionTemplate
from ghost_streak.services.catalog import RestrictionCatalog

_logger = logging.getLogger(__name__)

SEED_AUTHOR = "SYSTEM_SEED"


@dataclass
class SqlAlchemyRestrictionCatalog(RestrictionCatalog):
    """Read restriction templates from the restrictions table."""

    session_factory: sessionmaker[Session]

    def list_templates(self) -> list[RestrictionTemplate]:
        with self.session_factory() as db:
            rows = db.execute(select(RestrictionRow).order_by(RestrictionRow.id))
            return [
                RestrictionTemplate(
                    id=row.id,
                    occurrence_cap=row.occurrences,
                    score=row.score,
                    metadata=dict(row.effect_metadata or {}),
                )
                for row in rows.scalars()
            ]


def seed_restrictions(
    session_factory: sessionmaker[Session],
    templates: Iterable[RestrictionTemplate] = DEFAULT_RESTRICTIONS,
    added_by: str = SEED_AUTHOR,
) -> int:
    """Insert templates missing from the table and return how many were added."""
    with session_factory.begin() as db:
        existing = set(db.execute(select(RestrictionRow.id)).scalars())
        missing = [t for t in templates if t.id not in existing]
        db.add_all(
            RestrictionRow(
                id=template.id,
                occurrences=template.occurrence_cap,
                score=template.score,
                effect_metadata=dict(template.metadata),
                added_by=added_by,
            )
            for template in missing
        )
    if missing:
        _logger.info("Seeded restrictions: count=%s", len(missing))
    return len(missing)
