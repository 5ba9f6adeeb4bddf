from itertools import islice
from math import comb

from secretsolver.errors import InvalidInput


def _check_bounds(n, k):
    if n < 0:
        raise InvalidInput(f"Cannot choose from a negative number of items ({n})")
    if k <= 0:
        raise InvalidInput(f"Combination size must be positive, got {k}")
    if k > n:
        raise InvalidInput(f"Cannot choose {k} items out of {n}")


def count_combinations(n: int, k: int) -> int:
    _check_bounds(n, k)
    return comb(n, k)


def enumerate_combinations(n: int, k: int):
    """
    Lazily yields every k-subset of range(n) as an ascending index tuple,
    in lexicographic order starting at (0, 1, ..., k-1).

    Bounds are validated on call, not on first iteration.
    """
    _check_bounds(n, k)
    return _walk(n, k)


def _walk(n, k):
    indices = list(range(k))
    while True:
        yield tuple(indices)
        # Rightmost position that can still advance
        i = k - 1
        while i >= 0 and indices[i] == n - k + i:
            i -= 1
        if i < 0:
            return
        indices[i] += 1
        for j in range(i + 1, k):
            indices[j] = indices[j - 1] + 1


def batched(iterable, size: int):
    """Splits an iterable into tuples of at most `size` items"""
    if size <= 0:
        raise InvalidInput(f"Batch size must be positive, got {size}")
    iterator = iter(iterable)
    while True:
        batch = tuple(islice(iterator, size))
        if not batch:
            return
        yield batch
