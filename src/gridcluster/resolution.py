"""
Resolution lookups supplied to the clustering engine.

A resolution function maps a level to world units per display unit, or
returns None when the host has no resolution for that level.
"""
import math
from typing import Callable, Mapping, Optional

from gridcluster.config import settings

ResolutionFn = Callable[[int], Optional[float]]


def web_mercator_resolution(
    base_resolution: Optional[float] = None,
    min_level: int = 0,
    max_level: Optional[int] = None,
) -> ResolutionFn:
    """
    Resolution pyramid halving at every level.

    Args:
        base_resolution: World units per pixel at level 0 (default: from settings)
        min_level: Levels below this have no resolution
        max_level: Levels above this have no resolution (None = unbounded)
    """
    base = settings.BASE_RESOLUTION if base_resolution is None else base_resolution

    def resolution(level: int) -> Optional[float]:
        if level < min_level or (max_level is not None and level > max_level):
            return None
        return base / 2 ** level

    return resolution


def table_resolution(table: Mapping[int, float]) -> ResolutionFn:
    """Resolution from an explicit level -> resolution mapping."""
    values = dict(table)

    def resolution(level: int) -> Optional[float]:
        return values.get(level)

    return resolution


def resolve(resolution_fn: ResolutionFn, level: int) -> Optional[float]:
    """
    Call the host resolution function, normalizing failures to None.

    A resolution is usable only when it is a finite positive number.
    """
    try:
        value = resolution_fn(level)
        if value is None:
            return None
        value = float(value)
    except (KeyError, IndexError, ValueError, TypeError):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value
