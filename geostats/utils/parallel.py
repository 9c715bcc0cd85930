"""Parallel execution helpers shared by the solvers.

Work items are independent (one per domain location or per realization), so
they are spread over a thread pool. numpy and scipy release the GIL inside
LAPACK calls, which is where solvers spend their time.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Optional, Sequence, TypeVar, Union

from geostats.utils.errors import SolveCancelled, raise_parameter_error

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

_CANCELLED = object()


def resolve_n_jobs(n_jobs: Optional[int]) -> int:
    """Resolve the number of worker threads.

    Args:
        n_jobs: Requested workers. None or -1 means one per CPU.

    Returns:
        Positive number of workers.
    """
    if n_jobs is None or n_jobs == -1:
        return os.cpu_count() or 1
    if n_jobs < 1:
        raise_parameter_error(
            "n_jobs", n_jobs, constraint="n_jobs must be >= 1, -1 or None"
        )
    return n_jobs


def _batches(items: Sequence[T], batch_size: int) -> list[Sequence[T]]:
    return [items[i : i + batch_size] for i in range(0, len(items), batch_size)]


def parallel_map(
    func: Callable[[T], R],
    items: Sequence[T],
    n_jobs: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
    batch_size: int = 64,
) -> list[R]:
    """Apply ``func`` to every item, in parallel, preserving order.

    The cancel event is checked before each item starts. Items already
    running are allowed to finish; afterwards ``SolveCancelled`` is raised.

    Args:
        func: Function applied to each item.
        items: Work items.
        n_jobs: Number of worker threads (None for one per CPU).
        cancel_event: Optional event used for cooperative cancellation.
        batch_size: Number of items handed to a worker at once.

    Returns:
        Results in the order of ``items``.

    Raises:
        SolveCancelled: If ``cancel_event`` was set before all items started.
    """
    workers = resolve_n_jobs(n_jobs)

    def run_batch(batch: Sequence[T]) -> list[Union[R, object]]:
        out: list[Union[R, object]] = []
        for item in batch:
            if cancel_event is not None and cancel_event.is_set():
                out.append(_CANCELLED)
            else:
                out.append(func(item))
        return out

    batches = _batches(items, max(1, batch_size))
    if workers == 1 or len(batches) <= 1:
        chunks: Iterable[list] = [run_batch(batch) for batch in batches]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            chunks = list(executor.map(run_batch, batches))

    results = [result for chunk in chunks for result in chunk]
    n_cancelled = sum(1 for result in results if result is _CANCELLED)
    if n_cancelled:
        logger.info(
            f"Solve cancelled: {len(results) - n_cancelled} of {len(results)} "
            f"items completed"
        )
        raise SolveCancelled(
            f"Solve cancelled after {len(results) - n_cancelled} of "
            f"{len(results)} items",
            details={"completed": len(results) - n_cancelled, "total": len(results)},
        )
    return results  # type: ignore[return-value]


def get_parallel_info() -> dict[str, Union[bool, str, int]]:
    """Get information about parallel processing capabilities.

    Returns:
        Dictionary with threading info:
            - 'parallel_enabled': Whether more than one worker is available
            - 'num_threads': Default number of worker threads
            - 'threading_layer': Executor used for parallel solves
    """
    num_threads = resolve_n_jobs(None)
    return {
        "parallel_enabled": num_threads > 1,
        "num_threads": num_threads,
        "threading_layer": "concurrent.futures.ThreadPoolExecutor",
    }
