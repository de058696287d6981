from rangeswap.exceptions import DivisionByZero


def div_rounding_up(x: int, y: int) -> int:
    """
    Divide two unsigned values, rounding any remainder up.
    """

    if y == 0:
        raise DivisionByZero
    quotient, remainder = divmod(x, y)
    return quotient + (remainder > 0)
