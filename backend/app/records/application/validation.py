"""Form input parsing. Everything here runs before any record store call."""
import enum
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from app.records.domain.errors import InvalidRequest

# Matches the Numeric(_, 2) money columns
MONEY_PLACES = 2
MONEY_STEP = Decimal(1).scaleb(-MONEY_PLACES)


def _label(field_name: str) -> str:
    return field_name.replace("_", " ").capitalize()


def parse_positive_int(value: Any, field_name: str = "quantity") -> int:
    return _parse_int(value, field_name, minimum=1)


def parse_non_negative_int(value: Any, field_name: str = "quantity") -> int:
    return _parse_int(value, field_name, minimum=0)


def _parse_int(value: Any, field_name: str, minimum: int) -> int:
    message = (
        f"{_label(field_name)} must be a positive whole number"
        if minimum > 0
        else f"{_label(field_name)} must be a whole number of zero or more"
    )
    if isinstance(value, bool) or value is None:
        raise InvalidRequest(message)
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise InvalidRequest(message)
        number = int(value)
    else:
        text = str(value).strip()
        try:
            number = int(text)
        except ValueError:
            raise InvalidRequest(message)
    if number < minimum:
        raise InvalidRequest(message)
    return number


def parse_non_negative_decimal(value: Any, field_name: str = "amount") -> Decimal:
    """Parse a money value; both record stores keep exactly MONEY_PLACES decimals."""
    message = f"{_label(field_name)} must be a number of zero or more"
    if isinstance(value, bool) or value is None:
        raise InvalidRequest(message)
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidRequest(message)
    if not number.is_finite() or number < 0:
        raise InvalidRequest(message)

    try:
        quantized = number.quantize(MONEY_STEP)
    except InvalidOperation:
        raise InvalidRequest(message)
    if quantized != number:
        raise InvalidRequest(
            f"{_label(field_name)} can have at most {MONEY_PLACES} decimal places"
        )
    return quantized


def require_text(value: Optional[str], field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidRequest(f"{_label(field_name)} is required")
    return text


def require_selection(value: Optional[str], field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidRequest(f"Please select a {field_name.replace('_', ' ')}")
    return text


def parse_choice(value: Optional[str], choices: Iterable[str], field_name: str) -> str:
    allowed = [
        choice.value if isinstance(choice, enum.Enum) else str(choice) for choice in choices
    ]
    text = (value or "").strip()
    if text not in allowed:
        raise InvalidRequest(f"{_label(field_name)} must be one of: {', '.join(allowed)}")
    return text


def optional_text(value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    return text or None
