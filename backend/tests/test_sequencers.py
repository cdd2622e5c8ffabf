import logging

import pytest

from field_reports.api.utils.sequencers import allocate_project_number, format_project_number
from field_reports.core.exceptions import ProjectNumberCollisionError
from field_reports.core.tenant_context import clear_current_tenant_id, set_current_tenant_id
from field_reports.models import Project


def test_format_project_number_pads_sequence():
    assert format_project_number("02", 2025, 7) == "02-2025-0007"
    assert format_project_number("MAK", 2025, 1201) == "MAK-2025-1201"
    assert format_project_number("02", 2025, 3, digits=5) == "02-2025-00003"


def test_allocate_uses_tenant_prefix(db, tenant, counter_store):
    numbers = [allocate_project_number(db, 1, year=2025, store=counter_store) for _ in range(3)]

    assert numbers == ["MAK-2025-1201", "MAK-2025-1202", "MAK-2025-1203"]


def test_allocate_uses_default_prefix_without_tenant_row(db, counter_store):
    assert allocate_project_number(db, 42, year=2025, store=counter_store) == "02-2025-1201"


def test_allocate_reads_tenant_from_request_context(db, tenant, counter_store):
    set_current_tenant_id(1)
    try:
        assert allocate_project_number(db, year=2025, store=counter_store) == "MAK-2025-1201"
    finally:
        clear_current_tenant_id()


def test_allocate_without_tenant_fails(db, counter_store):
    with pytest.raises(ValueError):
        allocate_project_number(db, year=2025, store=counter_store)


def test_collision_retries_once(db, tenant, counter_store, caplog):
    db.add(Project(tenant_id=1, project_number="MAK-2025-1201", name="Imported"))
    db.commit()

    with caplog.at_level(logging.WARNING):
        number = allocate_project_number(db, 1, year=2025, store=counter_store)

    assert number == "MAK-2025-1202"
    assert "already exists" in caplog.text


def test_second_collision_is_terminal(db, tenant, counter_store):
    db.add_all([
        Project(tenant_id=1, project_number="MAK-2025-1201", name="Imported 1"),
        Project(tenant_id=1, project_number="MAK-2025-1202", name="Imported 2"),
    ])
    db.commit()

    with pytest.raises(ProjectNumberCollisionError) as exc_info:
        allocate_project_number(db, 1, year=2025, store=counter_store)

    assert exc_info.value.project_number == "MAK-2025-1202"
