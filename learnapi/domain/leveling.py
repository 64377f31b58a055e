"""Points to level progression.

Every LEVEL_THRESHOLD points is one level. A points update carries the
absolute total; the stored value is the remainder within the current level.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from learnapi.core.errors import InvalidType, NonPositiveValue, PointsOutOfRange

LEVEL_THRESHOLD = 100
# level is stored in a 32-bit INTEGER column
MAX_LEVEL = 2**31 - 1
MAX_POINTS = MAX_LEVEL * LEVEL_THRESHOLD - 1

INTEGER_PATTERN = re.compile(r"[+-]?\d+", re.ASCII)


@dataclass(frozen=True)
class LevelProgress:
    points: int
    level: int


def coerce_points(value: Any) -> int:
    """Return ``value`` as a strictly positive int or raise a ValidationError."""
    if isinstance(value, bool):
        raise InvalidType()
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise InvalidType()
        if value <= 0:
            raise NonPositiveValue()
        if not value.is_integer():
            raise InvalidType()
        number = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not INTEGER_PATTERN.fullmatch(text):
            raise InvalidType()
        number = int(text)
    else:
        raise InvalidType()
    if number <= 0:
        raise NonPositiveValue()
    if number > MAX_POINTS:
        raise PointsOutOfRange()
    return number


def compute_progress(requested_points: Any) -> LevelProgress:
    total = coerce_points(requested_points)
    return LevelProgress(points=total % LEVEL_THRESHOLD, level=total // LEVEL_THRESHOLD + 1)


def apply_points(current_user: Mapping[str, Any], requested_points: Any) -> dict[str, Any]:
    """Return a copy of ``current_user`` with points/level derived from the new total."""
    progress = compute_progress(requested_points)
    updated = dict(current_user)
    updated["points"] = progress.points
    updated["level"] = progress.level
    return updated
