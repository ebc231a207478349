from __future__ import annotations

"""Curated parameter presets per trial family.

Presets help users select sensible defaults quickly without many flags.
The weekly presets follow the weekly challenge schedule.
"""

DIGITS_PRESETS = {
    "default": {"count": 10},
    "long": {"count": 40},
}

WORDS_PRESETS = {
    "default": {"count": 10},
    "long": {"count": 30},
}

NUMBER_WALL_PRESETS = {
    "default": {"count": 100, "time_limit_s": 300, "group_size": 5},
    "week1": {"count": 150, "time_limit_s": 600, "group_size": 10},
}

BINARY_SURGE_PRESETS = {
    "default": {"count": 120, "time_limit_s": 300, "group_size": 3},
    "week4": {"count": 125, "time_limit_s": 300, "group_size": 3},
}

WORD_PALACE_PRESETS = {
    "default": {"count": 40, "time_limit_s": 300, "abstract_pct": 50},
    "concrete": {"count": 40, "time_limit_s": 300, "abstract_pct": 0},
}

SPOKEN_NUMBERS_PRESETS = {
    "default": {"count": 50, "pace_ms": 1000, "group_size": 2},
    "week5": {"count": 50, "pace_ms": 1000, "group_size": 2},
    "fast": {"count": 50, "pace_ms": 500, "group_size": 1},
}

IMAGE_SEQUENCE_PRESETS = {
    "default": {"count": 20, "pace_ms": 1000},
    "quick": {"count": 10, "pace_ms": 500},
}

NAMES_PRESETS = {
    "default": {"count": 20, "time_limit_s": 300},
    "short": {"count": 10, "time_limit_s": 120},
}

QUICK_MATH_PRESETS = {
    "default": {"time_limit_s": 60, "digit_width": 2},
    "warmup": {"time_limit_s": 60, "digit_width": 1},
}
