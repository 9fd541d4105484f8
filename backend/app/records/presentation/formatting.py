from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

Amount = Union[Decimal, int, float]


def _group_indian(digits: str) -> str:
    """Group an integer string the en-IN way: last three digits, then pairs."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_inr(amount: Optional[Amount]) -> str:
    """Format an amount as rupees with two decimals, e.g. ₹1,23,456.78.

    An unknown amount renders as a placeholder.
    """
    if amount is None:
        return "₹ --"
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, fraction = f"{abs(value):.2f}".split(".")
    return f"{sign}₹{_group_indian(whole)}.{fraction}"
