"""Tests for the unit status workflow."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime

import pytest

from models.role import Capability, UserRole, capabilities_for, resolve_role
from models.site_config import BuildingConfig, DeadUnitRule
from models.unit import ProcessStatus, Unit
from engine.structure import generate_buildings
from engine.workflow import (
    ACTION_MARK_MEP,
    ACTION_TRANSITION,
    apply_status,
    find_unit,
    mark_mep_complete,
    next_status,
    pending_approvals,
    replace_unit,
    resolve_action,
    update_unit_mep,
    update_unit_status,
)

S = ProcessStatus
T0 = datetime(2025, 3, 1, 9, 0, 0)
T1 = datetime(2025, 3, 1, 10, 0, 0)

WORKER = capabilities_for(UserRole.WORKER)
SUBCONTRACTOR = capabilities_for(UserRole.SUBCONTRACTOR)
ADMIN = capabilities_for(UserRole.ADMIN)
CREATOR = capabilities_for(UserRole.CREATOR)


def make_unit(status=S.NOT_STARTED, mep=False, dead=False):
    return Unit("T동-1-1", "101", status, T0, mep_completed=mep, is_dead_unit=dead)


def make_tree():
    config = BuildingConfig("1", "T동", 2, 2, (DeadUnitRule(2, 2, frozenset({2})),))
    return generate_buildings([config], T0)


class TestRoles:
    def test_worker_and_subcontractor_equivalent(self):
        assert WORKER == SUBCONTRACTOR == frozenset({Capability.ADVANCE_WORK})

    def test_creator_has_everything(self):
        assert CREATOR == frozenset(Capability)

    def test_admin_cannot_batch(self):
        assert Capability.APPROVE in ADMIN
        assert Capability.BATCH_OPERATIONS not in ADMIN

    def test_resolve_role(self):
        assert resolve_role("1234", "1234", "3690") is UserRole.ADMIN
        assert resolve_role("3690", "1234", "3690") is UserRole.CREATOR
        assert resolve_role("0000", "1234", "3690") is None


class TestNextStatus:
    @pytest.mark.parametrize("current,expected", [
        (S.NOT_STARTED, S.INSTALLING),
        (S.INSTALLING, S.APPROVAL_REQ),
        (S.APPROVAL_REQ, S.APPROVED),
        (S.POURING, S.CURED),
        (S.CURED, S.NOT_STARTED),
    ])
    def test_elevated_cycle(self, current, expected):
        t = next_status(current, ADMIN, mep_completed=False)
        assert t.next is expected

    def test_approved_needs_mep(self):
        assert next_status(S.APPROVED, ADMIN, mep_completed=False) is None
        t = next_status(S.APPROVED, ADMIN, mep_completed=True)
        assert t.next is S.POURING
        assert not t.is_revert

    def test_cured_reset_is_revert(self):
        assert next_status(S.CURED, CREATOR, False).is_revert

    def test_base_forward(self):
        assert next_status(S.NOT_STARTED, WORKER, False).next is S.INSTALLING
        assert next_status(S.INSTALLING, WORKER, False).next is S.APPROVAL_REQ

    def test_base_can_withdraw_request(self):
        t = next_status(S.APPROVAL_REQ, WORKER, False)
        assert t.next is S.INSTALLING
        assert t.is_revert

    @pytest.mark.parametrize("current", [S.APPROVED, S.POURING, S.CURED])
    def test_base_cannot_act_past_approval(self, current):
        assert next_status(current, WORKER, mep_completed=True) is None

    def test_no_capabilities(self):
        assert next_status(S.NOT_STARTED, frozenset(), False) is None

    def test_excluded_has_no_transition(self):
        assert next_status(S.EXCLUDED, CREATOR, False) is None


class TestResolveAction:
    def test_dead_unit_is_inert(self):
        assert resolve_action(make_unit(S.EXCLUDED, dead=True), CREATOR) is None

    def test_mark_mep_when_approved(self):
        for caps in (WORKER, ADMIN):
            action = resolve_action(make_unit(S.APPROVED), caps)
            assert action.kind == ACTION_MARK_MEP

    def test_pour_after_mep(self):
        action = resolve_action(make_unit(S.APPROVED, mep=True), ADMIN)
        assert action.kind == ACTION_TRANSITION
        assert action.transition.next is S.POURING

    def test_worker_after_mep_has_nothing(self):
        assert resolve_action(make_unit(S.APPROVED, mep=True), WORKER) is None


class TestApplyStatus:
    def test_sets_timestamp(self):
        unit = apply_status(make_unit(), S.INSTALLING, T1)
        assert unit.status is S.INSTALLING
        assert unit.last_updated == T1

    @pytest.mark.parametrize("target", [S.NOT_STARTED, S.INSTALLING, S.APPROVAL_REQ, S.APPROVED])
    def test_mep_reset(self, target):
        unit = apply_status(make_unit(S.CURED, mep=True), target, T1)
        assert unit.mep_completed is False

    @pytest.mark.parametrize("target", [S.POURING, S.CURED])
    def test_mep_kept(self, target):
        unit = apply_status(make_unit(S.APPROVED, mep=True), target, T1)
        assert unit.mep_completed is True

    def test_dead_unit_unchanged(self):
        dead = make_unit(S.EXCLUDED, dead=True)
        assert apply_status(dead, S.INSTALLING, T1) is dead

    def test_excluded_target_rejected(self):
        unit = make_unit(S.INSTALLING)
        assert apply_status(unit, S.EXCLUDED, T1) is unit


class TestMarkMep:
    def test_marks_when_approved(self):
        unit = mark_mep_complete(make_unit(S.APPROVED), T1)
        assert unit.mep_completed
        assert unit.last_updated == T1

    def test_idempotent(self):
        done = make_unit(S.APPROVED, mep=True)
        assert mark_mep_complete(done, T1) is done

    def test_not_before_approval(self):
        unit = make_unit(S.INSTALLING)
        assert mark_mep_complete(unit, T1) is unit


class TestScenarios:
    def _act(self, unit, caps):
        action = resolve_action(unit, caps)
        if action.kind == ACTION_MARK_MEP:
            return mark_mep_complete(unit, T1), None
        return apply_status(unit, action.transition.next, T1), action.transition

    def test_worker_request_and_withdraw(self):
        unit = make_unit()
        unit, t = self._act(unit, WORKER)
        assert (unit.status, t.is_revert) == (S.INSTALLING, False)
        unit, t = self._act(unit, WORKER)
        assert (unit.status, t.is_revert) == (S.APPROVAL_REQ, False)
        unit, t = self._act(unit, WORKER)
        assert (unit.status, t.is_revert) == (S.INSTALLING, True)

    def test_admin_approve_mep_pour(self):
        unit = make_unit(S.APPROVAL_REQ, mep=True)
        unit, _ = self._act(unit, ADMIN)
        assert (unit.status, unit.mep_completed) == (S.APPROVED, False)
        unit, t = self._act(unit, ADMIN)
        assert t is None
        assert (unit.status, unit.mep_completed) == (S.APPROVED, True)
        unit, _ = self._act(unit, ADMIN)
        assert unit.status is S.POURING


def force_status(tree, building_id, level, unit_id, status):
    """Put one unit straight into a status, skipping the workflow."""
    tree, _, _ = replace_unit(tree, building_id, level, unit_id, lambda u: apply_status(u, status, T1))
    return tree


class TestTreeUpdates:
    def test_update_returns_only_changed_building(self):
        tree = make_tree()
        new_tree, changed = update_unit_status(tree, "b-1", 1, "T동-1-2", S.INSTALLING, WORKER, T1)

        assert changed is new_tree[0]
        assert find_unit(new_tree, "b-1", 1, "T동-1-2")[2].status is S.INSTALLING
        # untouched units and the original tree stay as they were
        assert find_unit(new_tree, "b-1", 1, "T동-1-1")[2].status is S.NOT_STARTED
        assert find_unit(tree, "b-1", 1, "T동-1-2")[2].status is S.NOT_STARTED

    def test_unknown_unit_no_change(self):
        tree = make_tree()
        new_tree, changed = update_unit_status(tree, "b-1", 1, "nope", S.INSTALLING, CREATOR, T1)
        assert changed is None
        assert new_tree == tree

    def test_dead_unit_no_change(self):
        tree = make_tree()
        _, changed = update_unit_status(tree, "b-1", 2, "T동-2-2", S.INSTALLING, CREATOR, T1)
        assert changed is None

    def test_update_mep(self):
        tree = force_status(make_tree(), "b-1", 1, "T동-1-1", S.APPROVED)
        tree, changed = update_unit_mep(tree, "b-1", 1, "T동-1-1", True, WORKER, T1)
        assert changed is not None
        assert find_unit(tree, "b-1", 1, "T동-1-1")[2].mep_completed

    def test_pending_approvals(self):
        tree = force_status(make_tree(), "b-1", 2, "T동-2-1", S.APPROVAL_REQ)
        queue = pending_approvals(tree)
        assert [loc.unit_id for loc in queue] == ["T동-2-1"]
        assert queue[0].label == "T동 2층 201호"


class TestTreeAuthorization:
    @pytest.mark.parametrize("target", [S.APPROVED, S.POURING, S.CURED])
    def test_worker_cannot_reach_elevated_status(self, target):
        tree = make_tree()
        new_tree, changed = update_unit_status(tree, "b-1", 1, "T동-1-1", target, WORKER, T1)
        assert changed is None
        assert new_tree == tree

    def test_worker_cannot_approve_pending_request(self):
        tree = force_status(make_tree(), "b-1", 1, "T동-1-1", S.APPROVAL_REQ)
        new_tree, changed = update_unit_status(tree, "b-1", 1, "T동-1-1", S.APPROVED, SUBCONTRACTOR, T1)
        assert changed is None
        assert find_unit(new_tree, "b-1", 1, "T동-1-1")[2].status is S.APPROVAL_REQ

    def test_only_the_next_step_is_accepted(self):
        tree = make_tree()
        _, changed = update_unit_status(tree, "b-1", 1, "T동-1-1", S.APPROVAL_REQ, CREATOR, T1)
        assert changed is None

    def test_admin_approves_pending_request(self):
        tree = force_status(make_tree(), "b-1", 1, "T동-1-1", S.APPROVAL_REQ)
        tree, changed = update_unit_status(tree, "b-1", 1, "T동-1-1", S.APPROVED, ADMIN, T1)
        assert changed is not None
        assert find_unit(tree, "b-1", 1, "T동-1-1")[2].status is S.APPROVED

    def test_pour_waits_for_mep(self):
        tree = force_status(make_tree(), "b-1", 1, "T동-1-1", S.APPROVED)
        _, changed = update_unit_status(tree, "b-1", 1, "T동-1-1", S.POURING, ADMIN, T1)
        assert changed is None

    def test_no_capabilities_cannot_act(self):
        tree = force_status(make_tree(), "b-1", 1, "T동-1-1", S.APPROVED)
        _, changed = update_unit_status(tree, "b-1", 1, "T동-1-2", S.INSTALLING, frozenset(), T1)
        assert changed is None
        _, changed = update_unit_mep(tree, "b-1", 1, "T동-1-1", True, frozenset(), T1)
        assert changed is None

    def test_withdrawing_mep_needs_approval_rights(self):
        tree = force_status(make_tree(), "b-1", 1, "T동-1-1", S.APPROVED)
        tree, _ = update_unit_mep(tree, "b-1", 1, "T동-1-1", True, WORKER, T1)

        _, changed = update_unit_mep(tree, "b-1", 1, "T동-1-1", False, WORKER, T1)
        assert changed is None
        tree, changed = update_unit_mep(tree, "b-1", 1, "T동-1-1", False, ADMIN, T1)
        assert changed is not None
        assert not find_unit(tree, "b-1", 1, "T동-1-1")[2].mep_completed


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
