import threading

import pytest
from sqlalchemy.exc import OperationalError

from field_reports.core.exceptions import StoreUnavailableError
from field_reports.models import ProjectCounter
from field_reports.services.counter_store import ProjectCounterStore, ScopeKey, year_block_start


def test_first_allocations_start_at_year_block(counter_store):
    scope = ScopeKey(tenant_id=1, year=2025)

    values = [counter_store.allocate_next(scope) for _ in range(3)]

    assert values == [1201, 1202, 1203]


def test_counter_row_stores_next_value(counter_store, db):
    counter_store.allocate_next(ScopeKey(1, 2025))
    counter_store.allocate_next(ScopeKey(1, 2025))

    row = db.get(ProjectCounter, {"tenant_id": 1, "year": 2025})
    assert row.next_seq == 1203
    assert row.updated_at is not None


def test_scopes_are_independent(counter_store):
    assert counter_store.allocate_next(ScopeKey(1, 2025)) == 1201
    assert counter_store.allocate_next(ScopeKey(2, 2025)) == 1201
    assert counter_store.allocate_next(ScopeKey(1, 2026)) == 1601
    assert counter_store.allocate_next(ScopeKey(1, 2025)) == 1202


def test_year_block_start_never_below_one():
    assert year_block_start(2025, 2022, 400) == 1201
    assert year_block_start(2022, 2022, 400) == 1
    assert year_block_start(2020, 2022, 400) == 1


def test_concurrent_allocations_are_unique_and_gap_free(session_factory):
    counter_store = ProjectCounterStore(
        session_factory, base_year=2022, block_size=400, max_retries=10, retry_delay=0.01,
    )
    scope = ScopeKey(tenant_id=7, year=2025)
    results = []
    errors = []
    lock = threading.Lock()
    barrier = threading.Barrier(60)

    def worker():
        barrier.wait()
        try:
            value = counter_store.allocate_next(scope)
        except Exception as e:  # collected and asserted below
            with lock:
                errors.append(e)
            return
        with lock:
            results.append(value)

    threads = [threading.Thread(target=worker) for _ in range(60)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert sorted(results) == list(range(1201, 1261))


def test_insert_race_loser_uses_increment_path(counter_store, db):
    # Another request created the row after our UPDATE found nothing
    db.add(ProjectCounter(tenant_id=1, year=2025, next_seq=1205))
    db.commit()

    real_increment = counter_store._increment
    calls = []

    def stale_first_increment(scope):
        calls.append(scope)
        if len(calls) == 1:
            return None
        return real_increment(scope)

    counter_store._increment = stale_first_increment

    assert counter_store.allocate_next(ScopeKey(1, 2025)) == 1205
    assert len(calls) == 2


def _unreachable(*args, **kwargs):
    raise OperationalError("UPDATE tenant_project_counters", {}, Exception("connection refused"))


def test_store_unavailable_after_bounded_retries():
    sleeps = []
    store = ProjectCounterStore(
        _unreachable, base_year=2022, block_size=400,
        max_retries=3, retry_delay=0.5, sleep=sleeps.append,
    )

    with pytest.raises(StoreUnavailableError) as exc_info:
        store.allocate_next(ScopeKey(1, 2025))

    assert exc_info.value.attempts == 3
    assert sleeps == [0.5, 1.0]


def test_transient_store_failure_recovers(session_factory):
    failures = {"left": 2}

    def flaky_factory():
        if failures["left"]:
            failures["left"] -= 1
            _unreachable()
        return session_factory()

    store = ProjectCounterStore(
        flaky_factory, base_year=2022, block_size=400,
        max_retries=3, retry_delay=0, sleep=lambda _: None,
    )

    assert store.allocate_next(ScopeKey(1, 2025)) == 1201
