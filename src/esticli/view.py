"""Derive the visible index list from the raw poll result.

Pure functions, recomputed on every read. Index counts are small (tens to
low thousands) so there is no cache to invalidate.
"""

from collections.abc import Callable, Iterable

from esticli.models import IndexRate
from esticli.sort import SortSetting

SYSTEM_PREFIX = "."

Predicate = Callable[[IndexRate], bool]


def is_system_index(name: str) -> bool:
    """System indices live in the hidden dot-prefixed namespace."""
    return name.startswith(SYSTEM_PREFIX)


def is_visible(
    index: IndexRate,
    exclusions: set[str],
    show_system: bool,
    predicate: Predicate | None = None,
) -> bool:
    if index.name in exclusions:
        return False
    if not show_system and is_system_index(index.name):
        return False
    return predicate is None or predicate(index)


def derive(
    indices: Iterable[IndexRate],
    exclusions: set[str],
    show_system: bool,
    predicate: Predicate | None = None,
    sort: SortSetting | None = None,
) -> list[IndexRate]:
    """Filter ``indices`` down to what the table shows.

    Input order is kept unless ``sort`` is given.
    """
    visible = [i for i in indices if is_visible(i, exclusions, show_system, predicate)]
    if sort is not None:
        return sort.sort(visible)
    return visible


def total_rate(indices: Iterable[IndexRate]) -> float:
    return sum(i.rate_per_sec for i in indices)
