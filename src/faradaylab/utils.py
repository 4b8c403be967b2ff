def clamp(value: float, minimum: float, maximum: float) -> float:
    """Limit `value` to the closed interval [minimum, maximum]."""
    return max(minimum, min(maximum, value))


def linear(a1: float, a2: float, b1: float, b2: float, a: float) -> float:
    """
    Map `a` from the range [a1, a2] onto [b1, b2].

    Args:
        a1: Start of the source range.
        a2: End of the source range.
        b1: Start of the target range.
        b2: End of the target range.
        a: Value in the source range.

    Returns:
        The linearly mapped value.
    """
    return b1 + (a - a1) * (b2 - b1) / (a2 - a1)


def check_in_range(name: str, value: float, value_range: tuple[float, float]) -> None:
    """Raise ValueError when `value` lies outside the closed `value_range`."""
    minimum, maximum = value_range
    if not minimum <= value <= maximum:
        raise ValueError(f"{name} {value} is outside the range [{minimum}, {maximum}].")
