"""Numeric helpers shared by the scoring and risk modules"""


def clamp(value: float, low: float, high: float) -> float:
    """Constrain value to [low, high]"""
    return max(low, min(high, value))


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning default when the denominator is zero"""
    return numerator / denominator if denominator else default


def is_round_number(value: float) -> bool:
    """Positive multiple of 10,000 - typical of estimated rather than booked figures"""
    return value > 0 and value % 10_000 == 0
