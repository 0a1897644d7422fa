"""Reduce a session's restriction history into game settings."""

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from uuid import UUID

from ghost_streak.domain.errors import SessionNotFound
from ghost_streak.domain.game_settings import (
    MODIFIER_FIELDS,
    GameModifiers,
    GameSettings,
)
from ghost_streak.domain.models import RestrictionInstance
from ghost_streak.domain.restrictions import ITEM_REMOVAL_KEYS
from ghost_streak.services.repository import ChallengeStore


def aggregate_settings(instances: Iterable[RestrictionInstance]) -> GameSettings:
    """Fold restriction metadata over the baseline modifiers.

    Numeric effects add to numeric modifiers, boolean effects overwrite
    boolean modifiers (last one wins) and item-removal strings are
    collected in encounter order.
    """
    modifiers: dict[str, object] = asdict(GameModifiers())
    removed_items: list[str] = []

    for instance in instances:
        for key, value in (instance.metadata or {}).items():
            field_name = MODIFIER_FIELDS.get(key)
            if field_name is not None:
                current = modifiers[field_name]
                if isinstance(value, bool):
                    if isinstance(current, bool):
                        modifiers[field_name] = value
                elif isinstance(value, int | float) and not isinstance(
                    current, bool
                ):
                    modifiers[field_name] = current + value
            elif isinstance(value, str) and key in ITEM_REMOVAL_KEYS:
                removed_items.append(value)

    return GameSettings(
        modifiers=GameModifiers(**modifiers),
        removed_items=removed_items,
    )


@dataclass
class SettingsAggregator:
    """Describe the cumulative effect of every restriction in a session."""

    store: ChallengeStore

    def current_settings(self, session_id: UUID) -> GameSettings:
        with self.store.transaction() as repository:
            if repository.get_session(session_id) is None:
                raise SessionNotFound(session_id)
            instances = repository.list_restriction_instances(session_id)
        return aggregate_settings(instances)
