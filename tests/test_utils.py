# -*- coding: utf-8 -*-
"""utils 边界测试"""
import math

import pytest

from staffing.utils import ceil_exact, clean_text, is_blank, parse_clock, round_half_up, to_number


@pytest.mark.parametrize("value", [None, "", "  ", "-", "—", "null", "NULL", "无", "N/A", "undefined", math.nan])
def test_blank_markers(value):
    assert is_blank(value)


@pytest.mark.parametrize("value", [0, "0", "8编组", 1.5, False])
def test_non_blank_values(value):
    assert not is_blank(value)


def test_clean_text_strips_and_normalizes_integral_floats():
    assert clean_text("  G1 ") == "G1"
    assert clean_text(3.0) == "3"
    assert clean_text("-") is None


def test_to_number():
    assert to_number("12.5小时") == 12.5
    assert to_number(3) == 3.0
    assert to_number("无") is None
    assert to_number("abc") is None
    assert to_number(True) is None


def test_parse_clock():
    assert parse_clock("4:28") == (4, 28)
    assert parse_clock("13：05") == (13, 5)
    assert parse_clock("abc") is None
    assert parse_clock(4.5) is None


def test_round_half_up_is_not_bankers_rounding():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_ceil_exact_ignores_float_noise():
    assert ceil_exact(5.000000000001) == 5
    assert ceil_exact(4.2) == 5
    assert ceil_exact(0.1 + 0.2 + 2.7) == 3
