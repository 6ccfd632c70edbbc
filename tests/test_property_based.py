"""Property-based tests using hypothesis."""

from hypothesis import given, settings
from hypothesis import strategies as st

from lspd.profiles.models import OfficerRecord
from lspd.units.mutator import apply_action
from lspd.units.permissions import (
    Action,
    can_perform,
    full_manageable_ranks,
    manageable_ranks,
    permission_level,
)
from lspd.units.registry import RANKS, UNITS, Tier, normalize_ranks

# Custom strategies
unit_ids = st.sampled_from(sorted(UNITS))
rank_ids = st.sampled_from(sorted(RANKS))
actions = st.sampled_from(list(Action))
levels = st.integers(min_value=0, max_value=4)
unit_lists = st.lists(unit_ids, unique=True, max_size=4)
rank_lists = st.lists(rank_ids, unique=True, max_size=6)
officers = st.builds(
    lambda units, ranks: OfficerRecord(id="uid", units=units, additional_ranks=ranks),
    unit_lists,
    rank_lists,
)


class TestPermissionLevelProperties:
    @given(rank=rank_ids)
    def test_single_rank_grants_its_tier(self, rank):
        rank_def = RANKS[rank]
        assert permission_level(rank_def.unit, [], [rank]) == int(rank_def.tier)

    @given(unit=unit_ids, units=unit_lists, ranks=rank_lists)
    def test_level_in_range(self, unit, units, ranks):
        assert 0 <= permission_level(unit, units, ranks) <= 4

    @given(unit=unit_ids, units=unit_lists, ranks=rank_lists)
    def test_other_units_ranks_ignored(self, unit, units, ranks):
        own = [r for r in ranks if RANKS[r].unit == unit]
        assert permission_level(unit, units, ranks) == permission_level(unit, units, own)

    @given(unit=unit_ids, ranks=rank_lists)
    def test_manageable_strictly_below_top(self, unit, ranks):
        level = permission_level(unit, [], ranks)
        for rank in manageable_ranks(unit, ranks):
            assert RANKS[rank].unit == unit
            assert int(RANKS[rank].tier) < level


class TestEvaluatorProperties:
    @given(unit=unit_ids, level=levels, target=levels, action=actions)
    def test_caretaker_rank_never_changeable(self, unit, level, target, action):
        caretaker = UNITS[unit].ranks[-1]
        assert RANKS[caretaker].tier == Tier.CARETAKER
        if action.needs_rank:
            verdict = can_perform(
                action, unit, level, full_manageable_ranks(unit), target, rank=caretaker
            )
            assert not verdict.allowed

    @given(unit=unit_ids, ranks=rank_lists, rank=rank_ids)
    def test_no_self_escalation(self, unit, ranks, rank):
        """Nobody can assign a rank at or above their own tier in the unit."""
        level = permission_level(unit, [unit], ranks)
        verdict = can_perform(
            Action.ASSIGN_RANK, unit, level, manageable_ranks(unit, ranks), level, rank=rank
        )
        if verdict.allowed:
            assert RANKS[rank].unit == unit
            assert int(RANKS[rank].tier) < level

    @given(unit=unit_ids, level=levels, target=levels)
    def test_remove_member_requires_strict_superiority(self, unit, level, target):
        verdict = can_perform(Action.REMOVE_MEMBER, unit, level, [], target)
        assert verdict.allowed == (level >= 3 and target < level)

    @given(unit=unit_ids, level=levels, target=st.integers(min_value=0, max_value=3))
    def test_remove_member_denial_monotonic_in_target(self, unit, level, target):
        """Raising the target's level never turns a denial into an allow."""
        lower = can_perform(Action.REMOVE_MEMBER, unit, level, [], target)
        higher = can_perform(Action.REMOVE_MEMBER, unit, level, [], target + 1)
        if not lower.allowed:
            assert not higher.allowed

    @given(unit=unit_ids, level=levels, target=levels, rank=rank_ids, action=actions)
    def test_denials_carry_reason(self, unit, level, target, rank, action):
        verdict = can_perform(action, unit, level, full_manageable_ranks(unit), target, rank=rank)
        if not verdict.allowed:
            assert verdict.reason is not None
            assert verdict.message


class TestMutatorProperties:
    @given(officer=officers, unit=unit_ids, action=actions, rank=rank_ids)
    @settings(max_examples=200)
    def test_idempotent(self, officer, unit, action, rank):
        first = apply_action(officer, unit, action, rank)
        again = OfficerRecord(id="uid", units=first.units, additional_ranks=first.ranks)
        second = apply_action(again, unit, action, rank)
        assert not second.changed
        assert second.units == first.units
        assert second.ranks == first.ranks

    @given(officer=officers, unit=unit_ids)
    def test_remove_member_cascades(self, officer, unit):
        result = apply_action(officer, unit, Action.REMOVE_MEMBER)
        assert unit not in result.units
        assert permission_level(unit, result.units, result.ranks) == 0

    @given(officer=officers, rank=rank_ids)
    def test_assign_rank_implies_membership(self, officer, rank):
        result = apply_action(officer, RANKS[rank].unit, Action.ASSIGN_RANK, rank)
        assert rank in result.ranks
        assert RANKS[rank].unit in result.units

    @given(officer=officers, unit=unit_ids, action=actions, rank=rank_ids)
    def test_input_record_untouched(self, officer, unit, action, rank):
        units, ranks = list(officer.units), list(officer.additional_ranks)
        apply_action(officer, unit, action, rank)
        assert officer.units == units
        assert officer.additional_ranks == ranks

    @given(officer=officers, unit=unit_ids, action=actions, rank=rank_ids)
    def test_result_has_no_duplicates(self, officer, unit, action, rank):
        result = apply_action(officer, unit, action, rank)
        assert len(result.units) == len(set(result.units))
        assert result.ranks == normalize_ranks(result.ranks)


class TestRecordProperties:
    @given(ranks=st.lists(st.sampled_from(sorted(RANKS) + ["bogus", "IAD"]), max_size=8))
    def test_from_cosmos_ranks_known_and_unique(self, ranks):
        record = OfficerRecord.from_cosmos({"id": "u", "additionalRanks": ranks})
        assert all(r in RANKS for r in record.additional_ranks)
        assert len(record.additional_ranks) == len(set(record.additional_ranks))

    @given(ranks=rank_lists)
    def test_primary_rank_is_first(self, ranks):
        record = OfficerRecord(id="u", additional_ranks=ranks)
        assert record.to_cosmos()["additionalRank"] == (ranks[0] if ranks else None)
