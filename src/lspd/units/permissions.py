"""Permission evaluation for unit membership and rank changes.

Pure functions over an officer's unit memberships and ranks. Nothing here
reads or writes storage; the management flow loads both parties, asks
``can_perform`` for a verdict and only then applies the change.

Permission levels within a unit:
- 0: no relation to the unit
- 1: member
- 2: deputy rank
- 3: commander rank
- 4: caretaker rank

Rules (checked in order, first failure wins):
- add-member: actor level >= 2
- remove-member: actor level >= 3, and the target must be strictly below the actor
- assign-rank: rank belongs to the unit, caretaker rank is never assignable,
  deputy needs level >= 3, commander needs level >= 4, and the rank must be
  below the actor's own rank
- remove-rank: same as assign-rank, plus a commander rank can only be taken
  from someone strictly below the actor
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from lspd.units.registry import RANKS, Tier, describe_level, get_rank, get_unit

__all__ = [
    "Action",
    "DenyReason",
    "Verdict",
    "can_perform",
    "full_manageable_ranks",
    "manageable_ranks",
    "permission_level",
]

# Minimum actor level to hand out or take away a rank of each tier
_RANK_TIER_MIN_LEVEL = {
    Tier.DEPUTY: 3,
    Tier.COMMANDER: 4,
}


class Action(str, Enum):
    """Unit management actions."""

    ADD_MEMBER = "add-member"
    REMOVE_MEMBER = "remove-member"
    ASSIGN_RANK = "assign-rank"
    REMOVE_RANK = "remove-rank"

    @property
    def needs_rank(self) -> bool:
        return self in (Action.ASSIGN_RANK, Action.REMOVE_RANK)


class DenyReason(str, Enum):
    """Stable reason codes for denied actions."""

    INSUFFICIENT_LEVEL = "insufficient_level"
    TARGET_NOT_SUBORDINATE = "target_not_subordinate"
    RANK_NOT_IN_UNIT = "rank_not_in_unit"
    RANK_NOT_MANAGEABLE = "rank_not_manageable"
    CARETAKER_RESERVED = "caretaker_reserved"


@dataclass(frozen=True)
class Verdict:
    """Outcome of an authorization check."""

    allowed: bool
    reason: DenyReason | None = None
    message: str = ""

    @classmethod
    def allow(cls) -> "Verdict":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason, message: str) -> "Verdict":
        return cls(allowed=False, reason=reason, message=message)


def permission_level(unit: str, memberships: Iterable[str], ranks: Iterable[str]) -> int:
    """Compute an officer's permission level (0-4) within a unit.

    A held rank grants its tier's level regardless of lower ranks also held.
    Ranks of other units never count.

    Args:
        unit: Unit ID
        memberships: Units the officer belongs to
        ranks: Ranks the officer holds (any unit)

    Returns:
        Permission level, 0 for unknown units
    """
    unit_def = get_unit(unit)
    if unit_def is None:
        return 0

    level = int(Tier.MEMBER) if unit_def.id in set(memberships) else 0
    held = set(ranks)
    for rank in unit_def.ranks:
        if rank in held:
            level = max(level, int(RANKS[rank].tier))
    return level


def manageable_ranks(unit: str, actor_ranks: Iterable[str]) -> list[str]:
    """Ranks of a unit strictly below the actor's highest rank there.

    Plain members (no rank in the unit) manage nothing.

    Args:
        unit: Unit ID
        actor_ranks: Ranks the acting officer holds

    Returns:
        Rank IDs, highest authority first
    """
    unit_def = get_unit(unit)
    if unit_def is None:
        return []

    held = set(actor_ranks)
    top = max((RANKS[r].tier for r in unit_def.ranks if r in held), default=None)
    if top is None:
        return []
    return [r for r in reversed(unit_def.ranks) if RANKS[r].tier < top]


def full_manageable_ranks(unit: str) -> list[str]:
    """The whole rank ladder of a unit, highest first (high command only)."""
    unit_def = get_unit(unit)
    return list(reversed(unit_def.ranks)) if unit_def else []


def _check_rank_change(
    action: Action,
    unit: str,
    rank: str | None,
    actor_level: int,
    actor_manageable: set[str],
    target_level: int,
) -> Verdict:
    rank_def = get_rank(rank)
    if rank_def is None or rank_def.unit != unit:
        return Verdict.deny(DenyReason.RANK_NOT_IN_UNIT, f"Rank {rank} does not belong to {unit}")

    if rank_def.tier == Tier.CARETAKER:
        if action == Action.ASSIGN_RANK:
            message = "The caretaker rank can only be assigned by the department board"
        else:
            message = "The caretaker rank cannot be removed here"
        return Verdict.deny(DenyReason.CARETAKER_RESERVED, message)

    min_level = _RANK_TIER_MIN_LEVEL[rank_def.tier]
    if actor_level < min_level:
        verb = "assign" if action == Action.ASSIGN_RANK else "remove"
        return Verdict.deny(
            DenyReason.INSUFFICIENT_LEVEL,
            f"You need {describe_level(min_level)} level to {verb} {rank_def.label}",
        )

    if (
        action == Action.REMOVE_RANK
        and rank_def.tier == Tier.COMMANDER
        and target_level >= actor_level
    ):
        return Verdict.deny(
            DenyReason.TARGET_NOT_SUBORDINATE,
            "You cannot take a rank from someone with equal or higher authority",
        )

    if rank_def.id not in actor_manageable:
        return Verdict.deny(
            DenyReason.RANK_NOT_MANAGEABLE,
            f"{rank_def.label} is not below your own rank in this unit",
        )

    return Verdict.allow()


def can_perform(
    action: Action,
    unit: str,
    actor_level: int,
    actor_manageable: Iterable[str],
    target_level: int,
    rank: str | None = None,
) -> Verdict:
    """Decide whether an actor may perform a management action on a target.

    Args:
        action: Requested action
        unit: Unit the action applies to
        actor_level: Actor's permission level in the unit
        actor_manageable: Ranks the actor may administer (``manageable_ranks``)
        target_level: Target's current permission level in the unit
        rank: Rank ID for assign-rank / remove-rank

    Returns:
        Verdict, with a reason code and message when denied
    """
    action = Action(action)

    if action == Action.ADD_MEMBER:
        if actor_level < 2:
            return Verdict.deny(
                DenyReason.INSUFFICIENT_LEVEL, "You need Deputy level to add unit members"
            )
        return Verdict.allow()

    if action == Action.REMOVE_MEMBER:
        if actor_level < 3:
            return Verdict.deny(
                DenyReason.INSUFFICIENT_LEVEL, "You need Commander level to remove unit members"
            )
        if target_level >= actor_level:
            return Verdict.deny(
                DenyReason.TARGET_NOT_SUBORDINATE,
                "You cannot remove someone with equal or higher authority",
            )
        return Verdict.allow()

    return _check_rank_change(
        action, unit, rank, actor_level, set(actor_manageable), target_level
    )
