from decimal import Decimal

import pytest

from app.records.application.validation import (
    parse_choice,
    parse_non_negative_decimal,
    parse_non_negative_int,
    parse_positive_int,
    require_selection,
)
from app.records.domain.errors import InvalidRequest
from app.records.domain.models import PayeeType


@pytest.mark.parametrize("value, expected", [("10", 10), (" 7 ", 7), (3, 3), (4.0, 4)])
def test_positive_int_accepts_whole_numbers(value, expected):
    assert parse_positive_int(value) == expected


@pytest.mark.parametrize("value", ["-1", -1, 0, "0", "abc", "", None, "2.5", 2.5, True])
def test_positive_int_rejects_everything_else(value):
    with pytest.raises(InvalidRequest):
        parse_positive_int(value)


def test_non_negative_int_allows_zero():
    assert parse_non_negative_int("0") == 0
    with pytest.raises(InvalidRequest):
        parse_non_negative_int("-3")


@pytest.mark.parametrize(
    "value, expected",
    [("150.50", Decimal("150.50")), (0, Decimal("0")), (160.0, Decimal("160.0"))],
)
def test_non_negative_decimal_parses(value, expected):
    assert parse_non_negative_decimal(value) == expected


@pytest.mark.parametrize("value", ["-0.01", "abc", "", None, "NaN", "Infinity"])
def test_non_negative_decimal_rejects(value):
    with pytest.raises(InvalidRequest):
        parse_non_negative_decimal(value, "rate")


def test_required_selection_must_be_non_empty():
    assert require_selection(" project-1 ", "project") == "project-1"
    with pytest.raises(InvalidRequest) as exc_info:
        require_selection("", "project")
    assert exc_info.value.message == "Please select a project"


def test_choice_accepts_enum_values():
    assert parse_choice("vendor", PayeeType, "payee_type") == "vendor"
    with pytest.raises(InvalidRequest):
        parse_choice("customer", PayeeType, "payee_type")


def test_money_keeps_two_decimal_places():
    assert str(parse_non_negative_decimal("150.5", "rate")) == "150.50"
    assert str(parse_non_negative_decimal("150.500", "rate")) == "150.50"
    assert str(parse_non_negative_decimal(7, "rate")) == "7.00"


@pytest.mark.parametrize("value", ["150.555", "0.001", 0.125])
def test_money_with_more_than_two_decimals_is_rejected(value):
    with pytest.raises(InvalidRequest) as exc_info:
        parse_non_negative_decimal(value, "rate")
    assert exc_info.value.message == "Rate can have at most 2 decimal places"
