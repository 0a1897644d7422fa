"""Restriction templates and the reference data they draw from."""

from dataclasses import dataclass, field

# Effect keys whose string value names an item taken out of the game.
ITEM_REMOVAL_KEYS = frozenset({"item", "forgottenItem", "soleItem"})

# Effect keys holding a numeric placeholder to be swapped for a random item.
ITEM_PLACEHOLDER_KEYS = ("forgottenItem", "soleItem")


@dataclass(frozen=True)
class RestrictionTemplate:
    """Catalog entry describing a handicap.

    `occurrence_cap` of None means the restriction may be drawn any number
    of times within a session.
    """

    id: str
    occurrence_cap: int | None
    score: int
    metadata: dict[str, object] = field(default_factory=dict)

    @property
    def is_unlimited(self) -> bool:
        return self.occurrence_cap is None


GAME_ITEMS = (
    "crucifix",
    "dots_projector",
    "emf_reader",
    "firelight",
    "flashlight",
    "ghost_writing_book",
    "head_gear",
    "igniter",
    "incense",
    "motion_sensor",
    "parabolic_microphone",
    "photo_camera",
    "salt",
    "sanity_medication",
    "sound_sensor",
    "spirit_box",
    "thermometer",
    "tripod",
    "uv_light",
    "video_camera",
)

GHOST_TYPES = (
    "banshee",
    "dayan",
    "deogen",
    "demon",
    "gallu",
    "goryo",
    "hantu",
    "jinn",
    "mare",
    "moroi",
    "myling",
    "obake",
    "obambo",
    "oni",
    "onryo",
    "phantom",
    "poltergeist",
    "raiju",
    "revenant",
    "shade",
    "spirit",
    "thaye",
    "the_mimic",
    "the_twins",
    "wraith",
    "yokai",
    "yurei",
)

DEFAULT_RESTRICTIONS = (
    RestrictionTemplate("no_flashlights", 1, 3, {"item": "flashlight"}),
    RestrictionTemplate("broken_sprint", 1, 4, {"sprint": False}),
    RestrictionTemplate("radio_silence", 1, 2, {"item": "spirit_box"}),
    RestrictionTemplate("candlelight_only", 1, 4, {"breaker": False}),
    RestrictionTemplate("single_trip", 2, 2, {}),
    RestrictionTemplate("forgotten_item", 4, 1, {"forgottenItem": 1}),
    RestrictionTemplate("shy_ghost", 3, 3, {"evidence": -1}),
    RestrictionTemplate("athletic_ghost", 3, 3, {"entitySpeed": 25}),
    RestrictionTemplate("untrained_hunters", 2, 2, {"playerSpeed": -25}),
    RestrictionTemplate("blackout", 1, 5, {"breaker": False, "evidence": -1}),
    RestrictionTemplate("lower_tier_items", 2, 2, {"tier": -1}),
    RestrictionTemplate("random_map", 1, 1, {}),
    RestrictionTemplate("insane_hunters", 2, 3, {"sanity": -25}),
    RestrictionTemplate("dodgy_medicine", 1, 2, {"item": "sanity_medication"}),
    RestrictionTemplate("sole_copy", 3, 1, {"soleItem": 1}),
    RestrictionTemplate("suspicious_contractors", 1, 2, {}),
)
