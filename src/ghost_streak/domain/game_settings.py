"""Cumulative game settings produced by a session's restrictions."""

from dataclasses import dataclass, field

# Effect metadata key -> GameModifiers attribute.
MODIFIER_FIELDS = {
    "evidence": "evidence",
    "tier": "tier",
    "entitySpeed": "entity_speed",
    "playerSpeed": "player_speed",
    "breaker": "breaker",
    "sanity": "sanity",
    "sprint": "sprint",
}


@dataclass(frozen=True)
class GameModifiers:
    """Lobby modifiers; defaults are the unrestricted baseline."""

    evidence: int | float = 3
    tier: int | float = 3
    entity_speed: int | float = 100
    player_speed: int | float = 100
    breaker: bool = True
    sanity: int | float = 100
    sprint: bool = True


@dataclass(frozen=True)
class GameSettings:
    """Snapshot of modifiers and items removed from play."""

    modifiers: GameModifiers = field(default_factory=GameModifiers)
    removed_items: list[str] = field(default_factory=list)
