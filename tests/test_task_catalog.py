"""Tests for the task catalog repository and its cache."""

import pytest

from homecare.catalog.tasks import DEFAULT_TASKS, TaskCatalog
from homecare.schemas.task_schema import ServiceCategory, Task
from homecare.stores import InMemoryTaskSource
from tests.conftest import make_task_row


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class CountingSource(InMemoryTaskSource):
    def __init__(self, rows=None) -> None:
        super().__init__(rows)
        self.fetches = 0

    def fetch_active_tasks(self):
        self.fetches += 1
        return super().fetch_active_tasks()


class FailingSource:
    def fetch_active_tasks(self):
        raise ConnectionError("database unavailable")


class TestTaskFromRow:
    def test_maps_backing_columns(self):
        task = Task.from_row(make_task_row("bathing", "Bathing", 40, 36, apply_hst=True))
        assert task.name == "Bathing"
        assert task.included_minutes == 40
        assert task.base_cost == 36
        assert task.apply_hst

    def test_missing_numbers_use_defaults(self):
        task = Task.from_row({"id": "x", "task_name": "X"})
        assert task.included_minutes == 30
        assert task.base_cost == 35

    def test_unparsable_minutes_use_default(self):
        task = Task.from_row(make_task_row("x", "X", minutes="abc"))
        assert task.included_minutes == 30

    def test_unknown_category_is_standard(self):
        task = Task.from_row(make_task_row("x", "X", service_category="spa-day"))
        assert task.service_category == ServiceCategory.STANDARD

    def test_negative_cost_is_skipped(self):
        assert Task.from_row(make_task_row("x", "X", cost=-5)) is None

    def test_round_trip_row(self):
        task = DEFAULT_TASKS[-1]
        assert Task.from_row(task.to_row()) == task


class TestCatalogCache:
    def setup_method(self):
        self.clock = FakeClock()
        self.source = CountingSource([make_task_row("bathing", "Bathing", 40, 36)])
        self.catalog = TaskCatalog(self.source, ttl_seconds=300, clock=self.clock)

    def test_served_from_cache_within_ttl(self):
        self.catalog.get_tasks()
        self.clock.now = 299
        self.catalog.get_tasks()
        assert self.source.fetches == 1

    def test_refetched_after_ttl(self):
        self.catalog.get_tasks()
        self.clock.now = 301
        self.catalog.get_tasks()
        assert self.source.fetches == 2

    def test_invalidate_forces_fetch(self):
        self.catalog.get_tasks()
        self.catalog.invalidate()
        self.catalog.get_tasks()
        assert self.source.fetches == 2

    def test_returned_list_is_a_copy(self):
        tasks = self.catalog.get_tasks()
        tasks.clear()
        assert len(self.catalog.get_tasks()) == 1


class TestCatalogFallback:
    def test_no_source_uses_defaults(self):
        tasks = TaskCatalog().get_tasks()
        assert [t.id for t in tasks] == [t.id for t in DEFAULT_TASKS]

    def test_failing_source_uses_defaults(self):
        tasks = TaskCatalog(FailingSource()).get_tasks()
        assert len(tasks) == len(DEFAULT_TASKS)

    def test_empty_source_uses_defaults(self):
        tasks = TaskCatalog(InMemoryTaskSource([])).get_tasks()
        assert len(tasks) == len(DEFAULT_TASKS)

    def test_inactive_rows_are_excluded(self):
        source = InMemoryTaskSource([
            make_task_row("a", "A"),
            make_task_row("b", "B", is_active=False),
        ])
        assert [t.id for t in TaskCatalog(source).get_tasks()] == ["a"]

    def test_failure_after_success_keeps_stale_cache(self):
        clock = FakeClock()
        catalog = TaskCatalog(InMemoryTaskSource([make_task_row("a", "A")]), ttl_seconds=10, clock=clock)
        catalog.get_tasks()
        catalog.source = FailingSource()
        clock.now = 60
        assert [t.id for t in catalog.get_tasks()] == ["a"]


class TestCatalogWrites:
    def setup_method(self):
        self.source = InMemoryTaskSource([make_task_row("a", "A")])
        self.catalog = TaskCatalog(self.source)

    def test_add_task_writes_through(self):
        self.catalog.add_task(Task(id="b", name="B", included_minutes=20, base_cost=30))
        assert self.catalog.get_task_by_id("b") is not None
        assert any(row["id"] == "b" for row in self.source.fetch_active_tasks())

    def test_add_duplicate_raises(self):
        with pytest.raises(ValueError, match="already exists"):
            self.catalog.add_task(Task(id="a", name="A", included_minutes=20, base_cost=30))

    def test_update_task(self):
        updated = self.catalog.update_task("a", base_cost=42)
        assert updated.base_cost == 42
        assert self.catalog.get_task_by_id("a").base_cost == 42

    def test_update_unknown_task(self):
        assert self.catalog.update_task("missing", base_cost=42) is None

    def test_delete_task(self):
        assert self.catalog.delete_task("a")
        assert self.catalog.get_task_by_id("a") is None
        assert self.source.fetch_active_tasks() == []

    def test_delete_unknown_task(self):
        assert not self.catalog.delete_task("missing")


class TestDerivedHelpers:
    def test_hospital_outranks_doctor(self, catalog):
        category = catalog.get_service_category_for_tasks(["doctor-escort", "hospital-visit"])
        assert category == ServiceCategory.HOSPITAL_DISCHARGE

    def test_doctor_category(self, catalog):
        category = catalog.get_service_category_for_tasks(["meal-prep", "doctor-escort"])
        assert category == ServiceCategory.DOCTOR_APPOINTMENT

    def test_standard_category(self, catalog):
        assert catalog.get_service_category_for_tasks(["meal-prep"]) == ServiceCategory.STANDARD

    def test_requires_discharge_upload(self, catalog):
        assert catalog.requires_discharge_upload(["hospital-visit"])
        assert not catalog.requires_discharge_upload(["meal-prep"])

    def test_selected_tasks_skip_unknown_ids(self, catalog):
        assert [t.id for t in catalog.get_selected_tasks(["meal-prep", "nope"])] == ["meal-prep"]

    def test_time_remaining(self, catalog):
        remaining = catalog.calculate_time_remaining(["meal-prep", "medication"])
        assert remaining.total_minutes == 45
        assert remaining.remaining_minutes == 15
        assert not remaining.exceeds

    def test_time_exceeds_base_hour(self, catalog):
        remaining = catalog.calculate_time_remaining(["personal-care", "meal-prep"])
        assert remaining.total_minutes == 75
        assert remaining.remaining_minutes == 0
        assert remaining.exceeds

    def test_doctor_visit_fills_base_hour(self):
        source = InMemoryTaskSource([make_task_row("quick-doc", "Quick", 20, 40, is_hospital_doctor=True)])
        remaining = TaskCatalog(source).calculate_time_remaining(["quick-doc"])
        assert remaining.total_minutes == 60
