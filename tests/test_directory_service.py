"""
Tests for directory loading and request snapshots.
"""
from workpulse.core.config import settings
from workpulse.repositories.data_store import DataStore
from workpulse.services.audit_service import EventLogger
from workpulse.services.directory_service import DirectoryService

from conftest import make_staff


def make_service(tmp_path):
    service = DirectoryService(store=DataStore(), event_logger=EventLogger(tmp_path / "events.jsonl"))
    service.load(settings.role_table_path, settings.staff_seed_path)
    return service


def test_snapshot_is_reused_until_the_store_changes(tmp_path):
    service = make_service(tmp_path)
    first = service.snapshot()
    assert service.snapshot() is first

    service.store.load_staff([*service.store.staff.values(), make_staff(11, 4, reporting_to=4)])
    second = service.snapshot()
    assert second is not first
    assert 11 in second.graph
    assert 11 not in first.graph


def test_role_edit_produces_a_new_registry(tmp_path):
    service = make_service(tmp_path)
    before = service.snapshot()
    role = before.registry.get_role(6)
    service.update_role_hierarchy(before.graph.get(1), role, 7)

    after = service.snapshot()
    assert after.registry.get_role(6).hierarchy_level == 7
    assert before.registry.get_role(6).hierarchy_level == 4
    assert service.event_logger.read_events()[-1]["event_type"] == "role_change"


def test_load_reports_reporting_cycles(tmp_path, caplog):
    service = make_service(tmp_path)
    staff = {s.staff_id: s for s in service.store.staff.values()}
    staff[2] = staff[2].model_copy(update={"reporting_to": 3})
    service.store.load_staff(staff.values())
    assert service.validate() == [(2, 3)]
    assert "Reporting cycle" in caplog.text
