"""madOS iwd backend - Signal strength classification."""

from .config import STRENGTH_FLOOR, STRENGTH_STEPS


def classify(signal: int) -> int:
    """Convert an iwd signal reading into a percentage bucket.

    Args:
        signal: Signal strength in centi-dBm (e.g. -6500 for -65 dBm).

    Returns:
        One of 0, 25, 50, 75 or 100.
    """
    for lower_bound, percentage in STRENGTH_STEPS:
        if signal > lower_bound:
            return percentage
    return STRENGTH_FLOOR
