"""
Task catalog repository with a time-to-live cache.

Tasks come from the backing service_tasks collection. When that source is
missing, failing or empty, the built-in DEFAULT_TASKS are served so a price
can always be computed. One catalog is built per session and passed to
whoever needs it; it owns its cache.

Usage:
    catalog = TaskCatalog(source=InMemoryTaskSource(rows))
    tasks = catalog.get_tasks()
    catalog.get_service_category_for_tasks(["doctor-escort", "meal-prep"])
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from homecare.config import settings
from homecare.schemas.task_schema import ServiceCategory, Task
from homecare.stores import TaskSource, WritableTaskSource

logger = logging.getLogger(__name__)

BASE_HOUR_MINUTES = 60

DEFAULT_TASKS: list[Task] = [
    Task(id="personal-care", name="Personal Care", included_minutes=45, base_cost=35),
    Task(id="companionship", name="Companionship Visit", included_minutes=60, base_cost=32),
    Task(id="meal-prep", name="Meal Preparation", included_minutes=30, base_cost=30),
    Task(id="medication", name="Medication Reminders", included_minutes=15, base_cost=35),
    Task(id="light-housekeeping", name="Light Housekeeping", included_minutes=30,
         base_cost=28, apply_hst=True),
    Task(id="transportation", name="Transportation Assistance", included_minutes=45,
         base_cost=38, apply_hst=True),
    Task(id="respite", name="Respite Care", included_minutes=60, base_cost=40),
    Task(id="doctor-escort", name="Doctor Appointment Escort", included_minutes=60,
         base_cost=38, is_hospital_doctor=True,
         service_category=ServiceCategory.DOCTOR_APPOINTMENT, apply_hst=True),
    Task(id="hospital-visit", name="Hospital Pick-up/Drop-off (Discharge)",
         included_minutes=90, base_cost=50, is_hospital_doctor=True,
         service_category=ServiceCategory.HOSPITAL_DISCHARGE,
         requires_discharge_upload=True, apply_hst=True),
]


@dataclass
class TimeRemaining:
    """How selected tasks fill the base hour."""
    total_minutes: int
    base_hour_minutes: int
    remaining_minutes: int
    exceeds: bool


class TaskCatalog:
    """Cached view over the task source with a built-in fallback."""

    def __init__(
        self,
        source: Optional[TaskSource] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.source = source
        self.ttl_seconds = settings.catalog.cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._cache: Optional[list[Task]] = None
        self._cached_at: float = 0.0

    # --- Reads ---

    def get_tasks(self) -> list[Task]:
        """Return the catalog, refreshing it once the cache has expired."""
        if self._cache is not None and self._clock() - self._cached_at < self.ttl_seconds:
            return list(self._cache)
        return self.refresh()

    def refresh(self) -> list[Task]:
        """Fetch from the source now. Never raises; degrades to defaults."""
        if self.source is None:
            return self._store_cache(self._defaults())

        try:
            rows = self.source.fetch_active_tasks()
        except Exception as exc:
            logger.error("Error fetching tasks from source: %s", exc)
            if self._cache is not None:
                return list(self._cache)
            return self._defaults()

        tasks = [task for task in (Task.from_row(row) for row in rows or []) if task is not None]
        if not tasks:
            logger.warning("Task source returned no active tasks; using built-in defaults")
            tasks = self._defaults()
        else:
            logger.debug("Task catalog refreshed with %d tasks", len(tasks))
        return self._store_cache(tasks)

    def invalidate(self) -> None:
        self._cache = None

    def get_task_by_id(self, task_id: str) -> Optional[Task]:
        for task in self.get_tasks():
            if task.id == task_id:
                return task
        return None

    def get_selected_tasks(self, task_ids: list[str]) -> list[Task]:
        """Tasks for the given ids, in order, skipping unknown ids."""
        by_id = {task.id: task for task in self.get_tasks()}
        return [by_id[task_id] for task_id in task_ids if task_id in by_id]

    # --- Writes ---

    def add_task(self, task: Task) -> list[Task]:
        tasks = self.get_tasks()
        if any(existing.id == task.id for existing in tasks):
            raise ValueError(f"Task '{task.id}' already exists")
        self._write_through(task)
        tasks.append(task)
        logger.info("Task added: %s", task.id)
        return self._store_cache(tasks)

    def update_task(self, task_id: str, **updates: Any) -> Optional[Task]:
        """Apply field updates to one task. Returns None if the id is unknown."""
        tasks = self.get_tasks()
        for index, task in enumerate(tasks):
            if task.id == task_id:
                updated = Task.model_validate({**task.model_dump(), **updates, "id": task_id})
                self._write_through(updated)
                tasks[index] = updated
                self._store_cache(tasks)
                logger.info("Task updated: %s", task_id)
                return updated
        logger.warning("Update ignored, unknown task: %s", task_id)
        return None

    def delete_task(self, task_id: str) -> bool:
        tasks = self.get_tasks()
        remaining = [task for task in tasks if task.id != task_id]
        if len(remaining) == len(tasks):
            return False
        if isinstance(self.source, WritableTaskSource):
            try:
                self.source.delete_task(task_id)
            except Exception as exc:
                logger.error("Error deleting task %s from source: %s", task_id, exc)
        self._store_cache(remaining)
        logger.info("Task deleted: %s", task_id)
        return True

    # --- Derived helpers ---

    def requires_discharge_upload(self, task_ids: list[str]) -> bool:
        return any(task.requires_discharge_upload for task in self.get_selected_tasks(task_ids))

    def get_service_category_for_tasks(self, task_ids: list[str]) -> ServiceCategory:
        """Highest-priority category among the selected tasks."""
        categories = {task.service_category for task in self.get_selected_tasks(task_ids)}
        if ServiceCategory.HOSPITAL_DISCHARGE in categories:
            return ServiceCategory.HOSPITAL_DISCHARGE
        if ServiceCategory.DOCTOR_APPOINTMENT in categories:
            return ServiceCategory.DOCTOR_APPOINTMENT
        return ServiceCategory.STANDARD

    def calculate_time_remaining(
        self, task_ids: list[str], base_hour_minutes: int = BASE_HOUR_MINUTES
    ) -> TimeRemaining:
        selected = self.get_selected_tasks(task_ids)
        total = sum(task.included_minutes for task in selected)
        # Hospital and doctor visits always book at least the base hour
        if any(task.is_hospital_doctor for task in selected):
            total = max(total, base_hour_minutes)
        exceeds = total > base_hour_minutes
        return TimeRemaining(
            total_minutes=total,
            base_hour_minutes=base_hour_minutes,
            remaining_minutes=0 if exceeds else base_hour_minutes - total,
            exceeds=exceeds,
        )

    # --- Internals ---

    @staticmethod
    def _defaults() -> list[Task]:
        return [task.model_copy() for task in DEFAULT_TASKS]

    def _store_cache(self, tasks: list[Task]) -> list[Task]:
        self._cache = list(tasks)
        self._cached_at = self._clock()
        return list(tasks)

    def _write_through(self, task: Task) -> None:
        if not isinstance(self.source, WritableTaskSource):
            return
        try:
            self.source.upsert_task(task.to_row())
        except Exception as exc:
            logger.error("Error saving task %s to source: %s", task.id, exc)
