"""Catalog of internal units and their rank ladders.

Each unit has a fixed ladder of up to three ranks above plain membership:
deputy, commander and caretaker ("opiekun"). The ladder is a lookup table,
so comparing authority is a comparison of tier values.

These constants are imported by:
- units/permissions.py: permission levels and manageable ranks
- units/mutator.py: membership cascade on removal
- profiles/models.py: normalization of stored units and ranks
"""

from dataclasses import dataclass
from enum import IntEnum

__all__ = [
    "RANKS",
    "UNITS",
    "RankDef",
    "Tier",
    "UnitDef",
    "describe_level",
    "get_rank",
    "get_unit",
    "normalize_ranks",
    "normalize_units",
    "rank_for_tier",
    "rank_owner",
    "rank_tier",
    "unit_ranks",
]


class Tier(IntEnum):
    """Authority tier within a unit. The value is the permission level it grants."""

    MEMBER = 1
    DEPUTY = 2
    COMMANDER = 3
    CARETAKER = 4


@dataclass(frozen=True)
class RankDef:
    """A rank scoped to exactly one unit and one tier."""

    id: str
    unit: str
    tier: Tier
    label: str


@dataclass(frozen=True)
class UnitDef:
    """An internal unit and its rank ladder (lowest authority first)."""

    id: str
    label: str
    abbreviation: str
    nav_color: str
    ranks: tuple[str, ...]


def _unit(
    unit_id: str,
    label: str,
    abbreviation: str,
    nav_color: str,
    *,
    deputy: tuple[str, str],
    commander: tuple[str, str],
    caretaker: tuple[str, str],
) -> tuple[UnitDef, list[RankDef]]:
    ranks = [
        RankDef(id=deputy[0], unit=unit_id, tier=Tier.DEPUTY, label=deputy[1]),
        RankDef(id=commander[0], unit=unit_id, tier=Tier.COMMANDER, label=commander[1]),
        RankDef(id=caretaker[0], unit=unit_id, tier=Tier.CARETAKER, label=caretaker[1]),
    ]
    unit = UnitDef(
        id=unit_id,
        label=label,
        abbreviation=abbreviation,
        nav_color=nav_color,
        ranks=tuple(r.id for r in ranks),
    )
    return unit, ranks


_CATALOG = [
    _unit(
        "iad",
        "Internal Affairs Division",
        "IAD",
        "#ef4444",
        deputy=("iad-deputy-chief-inspector", "IAD Deputy Chief Inspector"),
        commander=("iad-chief-inspector", "IAD Chief Inspector"),
        caretaker=("opiekun-iad", "Opiekun IAD"),
    ),
    _unit(
        "swat-sert",
        "Special Weapons and Tactics / Special Emergency Response Team",
        "SWAT / SERT",
        "#38bdf8",
        deputy=("swat-deputy-commander", "S.W.A.T. Deputy Commander"),
        commander=("swat-commander", "S.W.A.T. Commander"),
        caretaker=("opiekun-swat-sert", "Opiekun SWAT/SERT"),
    ),
    _unit(
        "usms",
        "United States Marshals Service",
        "USMS",
        "#f59e0b",
        deputy=("us-deputy-marshal", "U.S. Deputy Marshal"),
        commander=("us-marshal", "U.S. Marshal"),
        caretaker=("opiekun-usms", "Opiekun USMS"),
    ),
    _unit(
        "dtu",
        "Detective Task Unit",
        "DTU",
        "#6366f1",
        deputy=("dtu-deputy-commander", "DTU Deputy Commander"),
        commander=("dtu-commander", "DTU Commander"),
        caretaker=("opiekun-dtu", "Opiekun DTU"),
    ),
    _unit(
        "gu",
        "Gang Unit",
        "GU",
        "#0ea5e9",
        deputy=("gu-deputy-commander", "G.U. Deputy Commander"),
        commander=("gu-commander", "G.U. Commander"),
        caretaker=("opiekun-gu", "Opiekun G.U."),
    ),
    _unit(
        "ftd",
        "Field Training Division",
        "FTD",
        "#c084fc",
        deputy=("ftd-deputy-commander", "FTD Deputy Commander"),
        commander=("ftd-commander", "FTD Commander"),
        caretaker=("opiekun-ftd", "Opiekun FTD"),
    ),
]

UNITS: dict[str, UnitDef] = {unit.id: unit for unit, _ in _CATALOG}
RANKS: dict[str, RankDef] = {}
for _, _ranks in _CATALOG:
    for _rank in _ranks:
        if _rank.id in RANKS:
            raise RuntimeError(f"Rank {_rank.id} is defined for more than one unit")
        RANKS[_rank.id] = _rank

_LEVEL_LABELS = {
    4: "Opiekun",
    3: "Commander",
    2: "Deputy",
    1: "Member",
    0: "No access",
}


def _key(value: object) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def get_unit(value: object) -> UnitDef | None:
    """Look up a unit by ID (case and whitespace insensitive)."""
    return UNITS.get(_key(value))


def get_rank(value: object) -> RankDef | None:
    """Look up a rank by ID (case and whitespace insensitive)."""
    return RANKS.get(_key(value))


def rank_owner(rank: str) -> str | None:
    """Unit that owns a rank, or None for unknown ranks."""
    rank_def = get_rank(rank)
    return rank_def.unit if rank_def else None


def rank_tier(rank: str) -> Tier | None:
    """Tier of a rank, or None for unknown ranks."""
    rank_def = get_rank(rank)
    return rank_def.tier if rank_def else None


def unit_ranks(unit: str) -> tuple[str, ...]:
    """All ranks of a unit, lowest authority first. Empty for unknown units."""
    unit_def = get_unit(unit)
    return unit_def.ranks if unit_def else ()


def rank_for_tier(unit: str, tier: Tier) -> str | None:
    """The rank a unit defines for a tier, if any."""
    for rank in unit_ranks(unit):
        if RANKS[rank].tier == tier:
            return rank
    return None


def _normalize(value: object, catalog: dict) -> list[str]:
    items = value if isinstance(value, list | tuple) else [value]
    seen: list[str] = []
    for item in items:
        key = _key(item)
        if key in catalog and key not in seen:
            seen.append(key)
    return seen


def normalize_units(value: object) -> list[str]:
    """Normalize a stored units value to known unit IDs.

    Accepts a list or a single string. Unknown values are dropped and
    duplicates removed, keeping first-seen order.
    """
    return _normalize(value, UNITS)


def normalize_ranks(value: object) -> list[str]:
    """Normalize a stored ranks value to known rank IDs.

    Accepts a list or a single string (legacy ``additionalRank``).
    Unknown values are dropped and duplicates removed, keeping
    insertion order so the primary rank stays stable.
    """
    return _normalize(value, RANKS)


def describe_level(level: int) -> str:
    """Human-readable label for a permission level 0-4."""
    return _LEVEL_LABELS.get(level, _LEVEL_LABELS[0])
