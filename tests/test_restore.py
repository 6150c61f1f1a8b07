"""Tests for backup serialization and the restore merge."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
from datetime import datetime, timezone

import pytest

from models.site_config import BuildingConfig, DeadUnitRule
from models.unit import ProcessStatus
from data.loader import dump_json
from engine.restore import (
    backup_filename,
    build_backup,
    building_from_dict,
    building_to_dict,
    merge_backup,
    parse_backup,
    unit_from_dict,
)
from engine.structure import generate_buildings
from engine.workflow import apply_status, find_unit, mark_mep_complete, replace_unit

S = ProcessStatus
T0 = datetime(2025, 3, 1, 9, 0, 0)
T1 = datetime(2025, 3, 5, 14, 30, 0)
T2 = datetime(2025, 4, 1, 8, 0, 0)

CONFIGS = [
    BuildingConfig("1", "A동", 3, 2, (DeadUnitRule(3, 3, frozenset({2})),)),
    BuildingConfig("2", "B동", 2, 2),
]


def make_progress_tree():
    tree = generate_buildings(CONFIGS, T0)
    tree, _, _ = replace_unit(
        tree, "b-1", 1, "A동-1-1", lambda u: mark_mep_complete(apply_status(u, S.APPROVED, T1), T1),
    )
    tree, _, _ = replace_unit(tree, "b-2", 2, "B동-2-2", lambda u: apply_status(u, S.APPROVAL_REQ, T1))
    return tree


def round_trip(tree, site="현장"):
    payload = json.loads(dump_json(build_backup(tree, site, "PRJ-1", T2)))
    return parse_backup(payload)


class TestBackupFile:
    def test_fields(self):
        payload = build_backup(make_progress_tree(), "현장", "PRJ-1", T2)
        assert payload["siteName"] == "현장"
        assert payload["projectCode"] == "PRJ-1"
        assert payload["version"] == "3.2"
        assert payload["timestamp"] == T2.isoformat()
        assert len(payload["buildings"]) == 2

    def test_unit_record_keys(self):
        record = building_to_dict(make_progress_tree()[0])["floors"][0]["units"][0]
        assert record == {
            "id": "A동-1-1",
            "unitNumber": "101",
            "status": "승인완료",
            "lastUpdated": T1.isoformat(),
            "mepCompleted": True,
            "isDeadUnit": False,
        }

    def test_filename(self):
        assert backup_filename(T2) == "SFCS_Backup_2025-04-01.json"

    def test_building_round_trip(self):
        b = make_progress_tree()[0]
        assert building_from_dict(building_to_dict(b)) == b

    def test_utc_suffix_accepted(self):
        unit = unit_from_dict({
            "id": "A동-1-1", "unitNumber": "101", "status": "설치중",
            "lastUpdated": "2025-03-01T09:00:00.000Z",
        })
        assert unit.last_updated == datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
        assert unit.mep_completed is False
        assert unit.is_dead_unit is False

    def test_parse_backup_bad_record(self):
        with pytest.raises(ValueError):
            parse_backup({"siteName": "x", "buildings": [{"name": "no id"}]})

    def test_parse_backup_optional_fields(self):
        backup = parse_backup({"siteName": "x", "buildings": []})
        assert backup.project_code == ""
        assert backup.buildings == []


class TestMergeBackup:
    def test_round_trip_is_exact(self):
        tree = make_progress_tree()
        canonical = generate_buildings(CONFIGS, T2)
        assert merge_backup(canonical, round_trip(tree).buildings) == tree

    def test_progress_restored(self):
        restored = merge_backup(generate_buildings(CONFIGS, T2), round_trip(make_progress_tree()).buildings)
        unit = find_unit(restored, "b-1", 1, "A동-1-1")[2]
        assert unit.status is S.APPROVED
        assert unit.mep_completed
        assert unit.last_updated == T1

    def test_missing_building_keeps_canonical(self):
        canonical = generate_buildings(CONFIGS, T2)
        backup = round_trip(make_progress_tree()[:1]).buildings
        restored = merge_backup(canonical, backup)
        assert restored[1] == canonical[1]

    def test_extra_backup_building_dropped(self):
        canonical = generate_buildings(CONFIGS[:1], T2)
        restored = merge_backup(canonical, round_trip(make_progress_tree()).buildings)
        assert [b.id for b in restored] == ["b-1"]

    def test_missing_floor_and_unit_keep_canonical(self):
        tall = [BuildingConfig("2", "B동", 4, 3)]
        canonical = generate_buildings(tall, T2)
        restored = merge_backup(canonical, round_trip(make_progress_tree()).buildings)

        assert find_unit(restored, "b-2", 2, "B동-2-2")[2].status is S.APPROVAL_REQ
        assert find_unit(restored, "b-2", 2, "B동-2-3")[2] == find_unit(canonical, "b-2", 2, "B동-2-3")[2]
        assert restored[0].find_floor(4) == canonical[0].find_floor(4)

    def test_newly_dead_unit_stays_dead(self):
        # Backup has progress on B동 2F line 2; the new layout removes that unit
        new_configs = [CONFIGS[0], BuildingConfig("2", "B동", 2, 2, (DeadUnitRule(2, 2, frozenset({2})),))]
        canonical = generate_buildings(new_configs, T2)
        restored = merge_backup(canonical, round_trip(make_progress_tree()).buildings)

        unit = find_unit(restored, "b-2", 2, "B동-2-2")[2]
        assert unit.is_dead_unit
        assert unit.status is S.EXCLUDED

    def test_formerly_dead_unit_stays_canonical(self):
        canonical = generate_buildings([BuildingConfig("1", "A동", 3, 2)], T2)
        restored = merge_backup(canonical, round_trip(make_progress_tree()).buildings)

        unit = find_unit(restored, "b-1", 3, "A동-3-2")[2]
        assert not unit.is_dead_unit
        assert unit.status is S.NOT_STARTED
        assert unit.last_updated == T2

    def test_identity_from_canonical(self):
        canonical = generate_buildings(CONFIGS, T2)
        backup = round_trip(make_progress_tree()).buildings
        restored = merge_backup(canonical, backup)
        assert [u.unit_number for b in restored for _, u in b.iter_units()] == \
            [u.unit_number for b in canonical for _, u in b.iter_units()]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
