"""Level thresholds and computation.

The badge seed (`seed.py`) quotes some of these values as `xp_required`;
change both together.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Sequence

# Cumulative XP needed to reach each level; index 0 is level 1.
LEVEL_THRESHOLDS: list[int] = [
    0,  # Level 1
    100,  # Level 2
    250,  # Level 3
    500,  # Level 4
    1000,  # Level 5
    2000,  # Level 6
    3500,  # Level 7
    5500,  # Level 8
    8000,  # Level 9
    11000,  # Level 10
    15000,  # Level 11
    20000,  # Level 12
    26000,  # Level 13
    33000,  # Level 14
    41000,  # Level 15
    50000,  # Level 16 (plateau)
]

MAX_LEVEL = len(LEVEL_THRESHOLDS)


def level_for_xp(xp: int, thresholds: Sequence[int] = LEVEL_THRESHOLDS) -> int:
    """Highest level whose threshold ``xp`` has reached."""
    if xp < 0:
        msg = f"XP cannot be negative: {xp}"
        raise ValueError(msg)
    return max(1, bisect_right(thresholds, xp))


def level_progress(xp: int, thresholds: Sequence[int] = LEVEL_THRESHOLDS) -> dict:
    """Break ``xp`` down into level, level floors and XP left to the next level.

    At the top of the table the next floor is the last threshold and
    ``xp_to_next_level`` is 0 (plateau, not an error).
    """
    level = level_for_xp(xp, thresholds)
    current_floor = thresholds[level - 1]
    is_max = level >= len(thresholds)
    next_floor = thresholds[-1] if is_max else thresholds[level]

    return {
        "level": level,
        "current_level_xp": current_floor,
        "next_level_xp": next_floor,
        "xp_to_next_level": max(0, next_floor - xp),
        "is_max_level": is_max,
    }
