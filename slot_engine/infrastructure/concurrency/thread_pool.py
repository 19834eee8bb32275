# slot_engine/infrastructure/concurrency/thread_pool.py
import concurrent.futures
import logging
from typing import Callable, List, Optional, TypeVar

T = TypeVar("T")


class ThreadPool:
    """Runs simulation batches on a ``ThreadPoolExecutor``."""

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers
        self.logger = logging.getLogger("infrastructure.thread_pool")

    def execute_tasks(self, tasks: List[Callable[[], T]],
                      on_done: Optional[Callable[[int], None]] = None) -> List[T]:
        """
        Run tasks on worker threads.

        Args:
            tasks: Zero-argument callables
            on_done: Called with the running completion count as each task finishes

        Returns:
            Results in the order of ``tasks``, whatever order they finished in

        Raises:
            Exception: The first task failure, after pending tasks are cancelled
        """
        self.logger.debug(f"Executing {len(tasks)} tasks with {self.max_workers} workers")
        results: List[Optional[T]] = [None] * len(tasks)

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(task): index for index, task in enumerate(tasks)}
            try:
                for completed, future in enumerate(concurrent.futures.as_completed(futures), 1):
                    results[futures[future]] = future.result()
                    if on_done:
                        on_done(completed)
            except Exception:
                for future in futures:
                    future.cancel()
                raise

        return results
