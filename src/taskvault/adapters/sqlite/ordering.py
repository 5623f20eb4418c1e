"""Fractional ordering keys.

Items are ordered by a real-valued key. Moving one item only rewrites its own
key: the new key is placed between the neighbours it is dropped between. When
repeated halving exhausts float precision the siblings are renumbered to
evenly spaced integers and the key is computed again.

Neighbour naming follows the drop position: ``before`` is the key of the item
the moved item will precede, ``after`` the key of the item it will follow.
"""

from __future__ import annotations

FIRST_KEY = 1.0
STEP = 1.0


def compute_key(
    before: float | None,
    after: float | None,
    tail: float | None = None,
) -> float:
    """Key for an item dropped between two neighbours.

    Args:
        before: Key of the item that will come right after the moved one
        after: Key of the item that will come right before the moved one
        tail: Largest key among the siblings, used when neither neighbour is given

    Returns:
        The midpoint, one step outside a single neighbour, or one step past
        the tail (``FIRST_KEY`` when there are no siblings)
    """
    if before is not None and after is not None:
        return (before + after) / 2
    if before is not None:
        return before - STEP
    if after is not None:
        return after + STEP
    return tail + STEP if tail is not None else FIRST_KEY


def fits(key: float, before: float | None, after: float | None, min_gap: float) -> bool:
    """Whether ``key`` keeps a usable, strict order against its neighbours."""
    if before is not None and after is not None:
        low, high = sorted((before, after))
        return high - low >= min_gap and low < key < high
    if before is not None:
        return key < before
    if after is not None:
        return key > after
    return True


def renumbered(count: int) -> list[float]:
    """Evenly spaced keys ``1.0, 2.0, ...`` for ``count`` items."""
    return [FIRST_KEY + STEP * i for i in range(count)]
