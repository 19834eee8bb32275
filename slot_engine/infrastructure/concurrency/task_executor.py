# slot_engine/infrastructure/concurrency/task_executor.py
import logging
from enum import Enum, auto
from typing import Any, Callable, List, Optional, TypeVar

from slot_engine.infrastructure.concurrency.thread_pool import ThreadPool

T = TypeVar("T")


class ExecutionMode(Enum):
    SEQUENTIAL = auto()
    MULTITHREAD = auto()


class TaskExecutor:
    """Runs a list of tasks either inline or on a thread pool."""

    def __init__(self, mode: ExecutionMode, max_workers: Optional[int] = None):
        self.mode = mode
        self.max_workers = max_workers
        self.logger = logging.getLogger("infrastructure.task_executor")
        self.pool = ThreadPool(max_workers) if mode == ExecutionMode.MULTITHREAD else None

    def execute_with_progress(self, tasks: List[Callable[[], T]],
                              progress_callback: Optional[Callable[[int, int], Any]] = None) -> List[T]:
        """
        Execute tasks, reporting (completed, total) as each one finishes.

        Returns:
            Results in task order
        """
        task_count = len(tasks)
        self.logger.info(f"Executing {task_count} tasks in {self.mode.name} mode")

        def report(completed: int) -> None:
            if progress_callback:
                progress_callback(completed, task_count)

        if self.mode == ExecutionMode.SEQUENTIAL:
            results = []
            for task in tasks:
                results.append(task())
                report(len(results))
            return results

        return self.pool.execute_tasks(tasks, report)
