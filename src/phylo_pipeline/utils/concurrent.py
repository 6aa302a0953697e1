"""
Concurrent processing utilities for per-locus jobs.

This module provides the bounded thread pool used by the gene-tree batch and a
thread-safe progress tracker. Each worker blocks on one external process, so
threads rather than processes are used.
"""

import time
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

from loguru import logger


T = TypeVar("T")


@dataclass
class TaskResult:
    """Result of a parallel task."""
    task_id: str
    result: Any
    success: bool
    execution_time: float = 0.0


class ProgressTracker:
    """
    Thread-safe progress tracker for long-running operations.

    Counts completed and failed tasks and logs progress roughly every tenth of
    the total.
    """

    def __init__(self, total_tasks: int, description: str = "Processing"):
        self.total_tasks = total_tasks
        self.description = description
        self.completed_tasks = 0
        self.failed_tasks = 0
        self.start_time = time.time()
        self.lock = threading.Lock()
        self.task_times: List[float] = []

    def update(self, task_time: Optional[float] = None, failed: bool = False):
        """Record one finished task."""
        with self.lock:
            self.completed_tasks += 1
            if failed:
                self.failed_tasks += 1
            if task_time is not None:
                self.task_times.append(task_time)

            if self.completed_tasks % max(1, self.total_tasks // 10) == 0:
                self._log_progress()

    def _log_progress(self):
        percentage = (self.completed_tasks / self.total_tasks) * 100
        message = (
            f"{self.description}: {self.completed_tasks}/{self.total_tasks} "
            f"({percentage:.1f}%)"
        )
        if self.failed_tasks > 0:
            message += f" - Failed: {self.failed_tasks}"
        logger.info(message)

    def get_stats(self) -> Dict[str, Any]:
        """Get progress statistics."""
        with self.lock:
            stats = {
                "total_tasks": self.total_tasks,
                "completed_tasks": self.completed_tasks,
                "failed_tasks": self.failed_tasks,
                "elapsed_time": time.time() - self.start_time,
            }
            if self.task_times:
                stats["avg_task_time"] = sum(self.task_times) / len(self.task_times)
                stats["max_task_time"] = max(self.task_times)
            return stats

    def is_complete(self) -> bool:
        """Check if all tasks are complete."""
        with self.lock:
            return self.completed_tasks >= self.total_tasks


def _timed_call(func: Callable[[T], Any], item: T):
    started = time.perf_counter()
    value = func(item)
    return value, time.perf_counter() - started


def run_bounded(
    func: Callable[[T], Any],
    items: Sequence[T],
    max_workers: int,
    task_id: Callable[[T], str] = str,
    description: str = "Processing",
) -> List[TaskResult]:
    """
    Run ``func`` over ``items`` on a bounded thread pool.

    Returns only after every task has finished. A truthy return value counts
    as success, a falsy one as a handled failure. An exception raised by
    ``func`` is fatal: tasks that have not started are cancelled, running ones
    are waited for, and the exception is re-raised.

    Args:
        func: Worker function, called once per item
        items: Work items
        max_workers: Pool size
        task_id: Maps an item to the identifier stored on its result
        description: Label used in progress messages

    Returns:
        One TaskResult per item, in the order of ``items``
    """
    tracker = ProgressTracker(len(items), description)
    results: Dict[int, TaskResult] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(_timed_call, func, item): index
            for index, item in enumerate(items)
        }
        try:
            for future in as_completed(futures):
                index = futures[future]
                value, elapsed = future.result()
                success = bool(value)
                results[index] = TaskResult(
                    task_id=task_id(items[index]),
                    result=value,
                    success=success,
                    execution_time=elapsed,
                )
                tracker.update(task_time=elapsed, failed=not success)
        except BaseException:
            executor.shutdown(wait=True, cancel_futures=True)
            raise

    return [results[index] for index in range(len(items))]
