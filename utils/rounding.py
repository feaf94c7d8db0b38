import math


def round_half_up(value: float, decimals: int = 0) -> float:
    """Round with halves going up (towards +inf), unlike Python's banker's rounding"""
    factor = 10**decimals
    return math.floor(value * factor + 0.5) / factor


def round_km(value: float) -> int:
    """Whole kilometres, as published in the report"""
    return int(math.floor(value + 0.5))
