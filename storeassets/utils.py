"""
Ordered fallback helpers.

Proxies, selector catalogs and heuristics are all consumed the same way:
walk an ordered list and stop at the first candidate that produces a value.
"""
from typing import Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def first_match(candidates: Iterable[T], probe: Callable[[T], Optional[R]]) -> Optional[R]:
    """Return the first truthy result of ``probe`` over ``candidates``."""
    for candidate in candidates:
        result = probe(candidate)
        if result:
            return result
    return None


def unique(items: Iterable[T]) -> List[T]:
    """Drop repeated items while keeping first-seen order."""
    seen = set()
    result = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result
