from homecare.catalog.tasks import DEFAULT_TASKS, TaskCatalog, TimeRemaining

__all__ = ["TaskCatalog", "TimeRemaining", "DEFAULT_TASKS"]
