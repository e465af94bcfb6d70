"""
Batch grouping — split a stream into bounded batches.
Version: 1.0.0
"""
from typing import Iterable, Iterator, List, TypeVar

T = TypeVar("T")


def iter_batches(items: Iterable[T], max_batch_size: int) -> Iterator[List[T]]:
    """Yield lists of at most max_batch_size items, consuming items lazily."""
    if max_batch_size < 1:
        raise ValueError(f"max_batch_size must be >= 1, got {max_batch_size}")
    current_batch: List[T] = []
    for item in items:
        current_batch.append(item)
        if len(current_batch) >= max_batch_size:
            yield current_batch
            current_batch = []
    if current_batch:
        yield current_batch
