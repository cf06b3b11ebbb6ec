"""
Test best-effort cell parsing
"""

import math

import pytest

from catalog_etl.utils.normalization import (
    clean_text,
    extract_parenthesized_urls,
    is_affirmative,
    normalize_identifier,
    optional_text,
    parse_float,
    parse_int,
    parse_price,
    truncate,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("250", 250.0),
        ("250g", 250.0),
        (" 12.5 ", 12.5),
        (80, 80.0),
        ("", 0.0),
        (None, 0.0),
        ("abc", 0.0),
        ("NaN", 0.0),
        (float("nan"), 0.0),
        (math.inf, 0.0),
        (True, 0.0),
    ],
)
def test_parse_float_defaults_to_zero(value, expected):
    assert parse_float(value) == expected


def test_parse_int_truncates_fractions():
    assert parse_int("12.9") == 12
    assert parse_int("-3") == -3
    assert parse_int("several") == 0


@pytest.mark.parametrize(
    "value,expected",
    [
        ("$1,200", 1200),
        ("1,200", 1200),
        ("¥980", 980),
        ("€ 15.99", 15),
        ("399", 399),
        (450.5, 450),
        ("N/A", 0),
        ("", 0),
        (None, 0),
        ("$$5", 0),
    ],
)
def test_parse_price(value, expected):
    assert parse_price(value) == expected


def test_is_affirmative_requires_exact_token():
    assert is_affirmative("是", "是")
    assert is_affirmative(" 是 ", "是")
    assert not is_affirmative("否", "是")
    assert not is_affirmative("是的", "是")
    assert not is_affirmative(None, "是")
    assert is_affirmative(True, "yes")
    assert not is_affirmative("Yes", "yes")


def test_extract_parenthesized_urls_keeps_source_order():
    markup = "front.jpg (https://cdn.example/a.jpg), back.jpg (https://cdn.example/b.jpg) (http://insecure/c.jpg)"

    assert extract_parenthesized_urls(markup) == [
        "https://cdn.example/a.jpg",
        "https://cdn.example/b.jpg",
    ]
    assert extract_parenthesized_urls("") == []
    assert extract_parenthesized_urls(None) == []


def test_normalize_identifier():
    assert normalize_identifier("Happy Paws Co.") == "happy-paws-co"
    assert normalize_identifier("WEDO") == "wedo"
    assert normalize_identifier("a__b") == "a-b"
    assert normalize_identifier("---") == "unknown"


def test_text_helpers():
    assert clean_text("  hi ") == "hi"
    assert clean_text(None) == ""
    assert optional_text("   ") is None
    assert optional_text(" 4710000000000 ") == "4710000000000"
    assert truncate("abcdef", 3) == "abc"
    assert truncate("", 3) == ""
