# =============================================================================
# REVPLAN - MONTHS AND FORMATTING TESTS
# =============================================================================

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from revplan.formatting import (
    format_compact,
    format_currency,
    format_number,
    parse_formatted_number,
)
from revplan.months import (
    FIELD_NAMES,
    GRID_SIZE,
    field_name,
    fiscal_year_label,
    is_valid_month,
    month_index,
    parse_month,
    slot_for,
)


class TestMonthIndex:
    def test_basic(self):
        assert month_index("2026-01") == 0
        assert month_index("2026-12") == 11
        assert month_index("2026-07-15") == 6

    def test_missing_or_non_numeric(self):
        assert month_index("") is None
        assert month_index(None) is None
        assert month_index("2026") is None
        assert month_index("2026-ab") is None

    def test_out_of_range_returned(self):
        """Bounds checking is left to callers."""
        assert month_index("2026-13") == 12
        assert month_index("2026-00") == -1


class TestLayout:
    def test_field_names(self):
        assert len(FIELD_NAMES) == GRID_SIZE == 60
        assert FIELD_NAMES[0] == "jan"
        assert FIELD_NAMES[11] == "dec"
        assert FIELD_NAMES[12] == "jan_y2"
        assert FIELD_NAMES[59] == "dec_y5"

    def test_slot_for(self):
        assert slot_for(1, 1) == 0
        assert slot_for(2, 3) == 14
        assert slot_for(5, 12) == 59
        assert field_name(slot_for(3, 4)) == "apr_y3"

    def test_slot_outside_grid(self):
        with pytest.raises(KeyError):
            slot_for(6, 1)

    def test_fiscal_year_label(self):
        assert fiscal_year_label(2026, 1) == "FY-26"
        assert fiscal_year_label(2026, 5) == "FY-30"


class TestParseMonth:
    def test_valid(self):
        assert parse_month("2026-03") == (2026, 3)
        assert is_valid_month("2026-12")

    def test_invalid(self):
        for value in ["2026-13", "2026", "2026-1-1", "abc-de"]:
            assert not is_valid_month(value)
        with pytest.raises(ValueError):
            parse_month("2026-00")


class TestFormatting:
    """id-ID number formatting."""

    def test_format_number(self):
        assert format_number(1_500_000) == "1.500.000"
        assert format_number("1500000") == "1.500.000"
        assert format_number(-2500) == "-2.500"

    def test_format_number_blank(self):
        assert format_number(0) == ""
        assert format_number(None) == ""
        assert format_number("abc") == ""

    def test_parse_formatted_number(self):
        assert parse_formatted_number("1.500.000") == 1_500_000
        assert parse_formatted_number("Rp 2.000") == 2000
        assert parse_formatted_number("1,250") == 1250
        assert parse_formatted_number("") == 0
        assert parse_formatted_number(None) == 0
        assert parse_formatted_number("x1") == 0

    def test_format_currency(self):
        assert format_currency(1_500_000) == "Rp 1.500.000"
        assert format_currency(0) == "Rp 0"
        assert format_currency(-1000) == "-Rp 1.000"
        assert format_currency(None) == "Rp 0"

    def test_format_compact(self):
        assert format_compact(1_500_000_000) == "IDR 1.5Bn"
        assert format_compact(12_400_000) == "IDR 12Mn"
        assert format_compact(950_000) == "IDR 950.000"
        assert format_compact(2_346_000_000, prefix="", bn_digits=2) == "2.35Bn"
