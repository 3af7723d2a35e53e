"""Order-stable parallel map over independent work items."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TypeVar

from joblib import Parallel, delayed

T = TypeVar("T")
R = TypeVar("R")

BACKENDS = ("loky", "multiprocessing", "threading")


def parallel_map(
    func: Callable[[T], R],
    items: Iterable[T],
    *,
    n_jobs: int = 1,
    backend: str = "loky",
    batch_size: int | str = "auto",
) -> list[R]:
    """Apply `func` to every item; output order always matches input order.

    `func` must be picklable for the process backends (a module-level
    function or a `functools.partial` of one).
    """
    seq = list(items)
    if not seq:
        return []
    if backend not in BACKENDS:
        raise ValueError(f"Unknown parallel backend '{backend}'. Use one of {', '.join(BACKENDS)}.")
    jobs = int(n_jobs)
    if jobs == 1 or len(seq) == 1:
        return [func(item) for item in seq]
    return list(
        Parallel(n_jobs=jobs, backend=backend, batch_size=batch_size)(
            delayed(func)(item) for item in seq
        )
    )
