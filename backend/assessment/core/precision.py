"""
Fixed-precision comparisons for scores, percentages and thresholds.

Binary floating point puts values like 0.65 a hair below or above their
decimal intent (``0.5 + 0.5 * 0.3 == 0.6499999999999999``), which flips
pass/fail and band decisions exactly at the boundary. Every threshold
comparison in the scoring pipeline therefore rounds both sides to
``SCORE_DECIMAL_PLACES`` using HALF_UP rounding before comparing.
"""

from decimal import ROUND_HALF_UP, Decimal

SCORE_DECIMAL_PLACES = 4

_QUANTUM = Decimal(1).scaleb(-SCORE_DECIMAL_PLACES)


def round4(value: float) -> float:
    """Round to four decimal places, halves away from zero."""
    return float(Decimal(repr(value)).quantize(_QUANTUM, rounding=ROUND_HALF_UP))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Python's built-in ``round`` uses banker's rounding (``round(2.5) == 2``);
    allocation arithmetic needs the conventional behaviour.
    """
    return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def meets_threshold(value: float, threshold: float) -> bool:
    """``value >= threshold`` after rounding both to four places."""
    return round4(value) >= round4(threshold)


def is_below(value: float, threshold: float) -> bool:
    """``value < threshold`` after rounding both to four places."""
    return round4(value) < round4(threshold)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
