"""
Backing store interfaces and simple implementations.

In production the task catalog is served by the hosted database and the
admin overrides live in a browser-local key-value store. The pricing core
only depends on the two small protocols below.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Protocol, Union, runtime_checkable

logger = logging.getLogger(__name__)

ADMIN_PRICING_KEY = "admin_pricing"
SURGE_SCHEDULE_RULES_KEY = "surge_schedule_rules"


class KeyValueStore(Protocol):
    """String key-value store. Last write wins."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


@runtime_checkable
class TaskSource(Protocol):
    """Collection query returning active task rows."""

    def fetch_active_tasks(self) -> list[dict[str, Any]]: ...


@runtime_checkable
class WritableTaskSource(TaskSource, Protocol):
    """Task source that also accepts admin edits."""

    def upsert_task(self, row: dict[str, Any]) -> None: ...

    def delete_task(self, task_id: str) -> None: ...


class InMemoryStore:
    """Dict-backed key-value store, used by tests and the CLI."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def reset(self) -> None:
        """Clear all keys. Used by test fixtures for isolation."""
        self._data.clear()


class JsonFileStore:
    """Key-value store persisted as a single JSON object on disk."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Could not read store %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.error("Store %s does not hold a JSON object", self.path)
            return {}
        return data

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        logger.debug("Store key '%s' written to %s", key, self.path)


class InMemoryTaskSource:
    """Task rows held in memory, standing in for the hosted service_tasks table."""

    def __init__(self, rows: Optional[list[dict[str, Any]]] = None) -> None:
        self._rows: dict[str, dict[str, Any]] = {}
        for row in rows or []:
            self._rows[str(row["id"])] = dict(row)

    def fetch_active_tasks(self) -> list[dict[str, Any]]:
        active = [dict(r) for r in self._rows.values() if r.get("is_active", True)]
        return sorted(active, key=lambda r: str(r.get("task_name", "")))

    def upsert_task(self, row: dict[str, Any]) -> None:
        self._rows[str(row["id"])] = dict(row)

    def delete_task(self, task_id: str) -> None:
        self._rows.pop(task_id, None)
