"""Iterator utilities for batched participant processing."""

from typing import Iterable, Sequence, TypeVar

T = TypeVar('T')

def chunked(seq: Sequence[T] | Iterable[T], size: int) -> Iterable[list[T]]:
    """
    Yield lists of at most `size` items; the final list may be shorter.

    Args:
        seq: Input sequence or iterable
        size: Maximum size of each chunk (must be positive)

    Yields:
        Lists of items from the input, in order
    """
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    batch: list[T] = []
    for item in seq:
        batch.append(item)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch
