"""Tests for site-wide batch operations."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime

import pytest

from models.site_config import BuildingConfig, DeadUnitRule
from models.unit import ProcessStatus
from engine.batch import (
    BATCH_LABELS,
    BATCH_OPERATIONS,
    CLEARS_CHAT,
    FORCE_APPROVE,
    FORCE_INSTALL,
    FORCE_MEP,
    FORCE_REQUEST,
    FULL_RESET,
    REINITIALIZE,
    apply_batch,
)
from engine.structure import generate_buildings
from engine.workflow import apply_status, find_unit, mark_mep_complete, replace_unit

S = ProcessStatus
T0 = datetime(2025, 3, 1, 9, 0, 0)
T1 = datetime(2025, 3, 2, 9, 0, 0)

CONFIGS = [
    BuildingConfig("1", "A동", 3, 2, (DeadUnitRule(3, 3, frozenset({2})),)),
    BuildingConfig("2", "B동", 2, 3),
]


def make_tree():
    return generate_buildings(CONFIGS, T0)


def all_units(tree):
    return [u for b in tree for _, u in b.iter_units()]


def dead_units(tree):
    return [u for u in all_units(tree) if u.is_dead_unit]


def set_unit(tree, building_id, level, unit_id, status, mep=False):
    def mutate(unit):
        unit = apply_status(unit, status, T1)
        return mark_mep_complete(unit, T1) if mep else unit

    tree, _, _ = replace_unit(tree, building_id, level, unit_id, mutate)
    return tree


class TestForceOperations:
    @pytest.mark.parametrize("operation,status", [
        (FORCE_INSTALL, S.INSTALLING),
        (FORCE_REQUEST, S.APPROVAL_REQ),
        (FORCE_APPROVE, S.APPROVED),
    ])
    def test_sets_every_live_unit(self, operation, status):
        tree = apply_batch(operation, make_tree())
        for u in all_units(tree):
            if not u.is_dead_unit:
                assert u.status is status

    def test_dead_units_untouched(self):
        before = make_tree()
        for op in (FULL_RESET, FORCE_INSTALL, FORCE_REQUEST, FORCE_APPROVE, FORCE_MEP):
            after = apply_batch(op, before)
            assert dead_units(after) == dead_units(before)

    def test_force_keeps_timestamps(self):
        tree = apply_batch(FORCE_INSTALL, make_tree())
        assert all(u.last_updated == T0 for u in all_units(tree))

    def test_force_mep_only_eligible(self):
        tree = set_unit(make_tree(), "b-1", 1, "A동-1-1", S.APPROVED)
        tree = apply_batch(FORCE_MEP, tree)

        assert find_unit(tree, "b-1", 1, "A동-1-1")[2].mep_completed
        assert not find_unit(tree, "b-1", 1, "A동-1-2")[2].mep_completed

    def test_force_approve_keeps_mep(self):
        tree = apply_batch(FORCE_MEP, apply_batch(FORCE_APPROVE, make_tree()))
        tree = apply_batch(FORCE_APPROVE, tree)
        assert all(u.mep_completed for u in all_units(tree) if not u.is_dead_unit)

    @pytest.mark.parametrize("operation", [FORCE_INSTALL, FORCE_REQUEST])
    def test_force_earlier_status_keeps_mep(self, operation):
        tree = apply_batch(FORCE_MEP, apply_batch(FORCE_APPROVE, make_tree()))
        tree = apply_batch(operation, tree)
        assert all(u.mep_completed for u in all_units(tree) if not u.is_dead_unit)

    def test_force_approve_keeps_each_mep_flag(self):
        tree = set_unit(make_tree(), "b-1", 1, "A동-1-1", S.CURED, mep=True)
        tree = apply_batch(FORCE_APPROVE, tree)
        assert find_unit(tree, "b-1", 1, "A동-1-1")[2].mep_completed
        assert not find_unit(tree, "b-1", 1, "A동-1-2")[2].mep_completed

    def test_force_approve_then_mep(self):
        tree = apply_batch(FORCE_MEP, apply_batch(FORCE_APPROVE, make_tree()))
        assert all(u.mep_completed for u in all_units(tree) if not u.is_dead_unit)


class TestReset:
    def test_full_reset(self):
        tree = set_unit(make_tree(), "b-2", 2, "B동-2-3", S.APPROVED, mep=True)

        reset = apply_batch(FULL_RESET, tree)
        unit = find_unit(reset, "b-2", 2, "B동-2-3")[2]
        assert unit.status is S.NOT_STARTED
        assert unit.mep_completed is False

    def test_reinitialize_regenerates(self):
        tree = apply_batch(FORCE_APPROVE, make_tree())
        fresh = apply_batch(REINITIALIZE, tree, configs=CONFIGS, now=T1)

        assert fresh == generate_buildings(CONFIGS, T1)

    def test_reinitialize_needs_configs(self):
        with pytest.raises(ValueError):
            apply_batch(REINITIALIZE, make_tree())

    def test_resets_clear_chat(self):
        assert CLEARS_CHAT == {FULL_RESET, REINITIALIZE}


class TestOperationsTable:
    def test_unknown_operation(self):
        with pytest.raises(ValueError, match="Unknown batch operation"):
            apply_batch("explode", make_tree())

    def test_every_operation_labelled(self):
        assert set(BATCH_LABELS) == set(BATCH_OPERATIONS)

    def test_input_tree_unchanged(self):
        tree = make_tree()
        apply_batch(FORCE_REQUEST, tree)
        assert all(u.status in (S.NOT_STARTED, S.EXCLUDED) for u in all_units(tree))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
