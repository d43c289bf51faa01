from __future__ import annotations

import math


def round_half_up(value: float, digits: int = 0) -> float:
    """Round ``value`` to ``digits`` decimals, ties going towards +infinity.

    Python's :func:`round` uses banker's rounding, so ``round(2.5) == 2``. The
    caddy thresholds and stored tendencies are expressed with ties rounding up
    (``-8.5 -> -8``, ``0.125 -> 0.13``), which this helper reproduces.
    """

    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def round_int(value: float) -> int:
    return int(math.floor(value + 0.5))


__all__ = ["round_half_up", "round_int"]
