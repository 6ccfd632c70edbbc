"""Apply an authorized membership or rank change to an officer record.

Only called after ``can_perform`` allowed the action. Computes the new
state without touching the input record; the caller decides whether to
persist based on ``MutationResult.changed``.
"""

from dataclasses import dataclass
from datetime import datetime

from lspd.profiles.models import OfficerRecord
from lspd.units.permissions import Action
from lspd.units.registry import get_rank, unit_ranks


@dataclass(frozen=True)
class MutationResult:
    """New membership and rank state for one officer."""

    units: list[str]
    ranks: list[str]
    changed: bool

    @property
    def primary_rank(self) -> str | None:
        """Legacy single-rank projection: first held rank, or None."""
        return self.ranks[0] if self.ranks else None

    def patch(self, now: datetime) -> dict:
        """Profile fields to write for this change."""
        return {
            "units": list(self.units),
            "additionalRanks": list(self.ranks),
            "additionalRank": self.primary_rank,
            "updatedAt": now.isoformat(),
        }


def apply_action(
    record: OfficerRecord,
    unit: str,
    action: Action,
    rank: str | None = None,
) -> MutationResult:
    """Compute an officer's units and ranks after an action.

    - add-member: add the unit if absent
    - remove-member: drop the unit and every rank it owns
    - assign-rank: add the rank, and membership of its unit if absent
    - remove-rank: drop the rank; membership is kept

    Args:
        record: Current officer record
        unit: Unit ID the action applies to
        action: Management action
        rank: Rank ID for assign-rank / remove-rank

    Returns:
        MutationResult with ``changed=False`` when the requested state
        already held
    """
    action = Action(action)
    units = list(record.units)
    ranks = list(record.additional_ranks)

    if action == Action.ADD_MEMBER:
        if unit not in units:
            units.append(unit)

    elif action == Action.REMOVE_MEMBER:
        owned = set(unit_ranks(unit))
        units = [u for u in units if u != unit]
        ranks = [r for r in ranks if r not in owned]

    elif action == Action.ASSIGN_RANK:
        rank_def = get_rank(rank)
        if rank_def is None:
            raise ValueError(f"Unknown rank: {rank}")
        if rank_def.unit not in units:
            units.append(rank_def.unit)
        if rank_def.id not in ranks:
            ranks.append(rank_def.id)

    elif action == Action.REMOVE_RANK:
        rank_def = get_rank(rank)
        if rank_def is None:
            raise ValueError(f"Unknown rank: {rank}")
        ranks = [r for r in ranks if r != rank_def.id]

    changed = units != record.units or ranks != record.additional_ranks
    return MutationResult(units=units, ranks=ranks, changed=changed)
