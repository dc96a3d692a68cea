from datetime import date

import pandas as pd

from kiosc_core.formatters import (
    format_currency,
    format_date,
    format_number,
    format_percentage,
    round_half_up,
    to_strftime,
)


def test_format_date_default_pattern():
    assert format_date(date(2024, 3, 5)) == "05/03/2024"
    assert format_date("2024-03-05") == "05/03/2024"
    assert format_date(pd.Timestamp("2024-12-31")) == "31/12/2024"


def test_format_date_custom_patterns():
    assert format_date("2024-03-05", "yyyy-MM-dd") == "2024-03-05"
    assert format_date("2024-03-05", "dd MMM yyyy") == "05 Mar 2024"
    assert to_strftime("MM/dd/yy") == "%m/%d/%y"


def test_format_date_blank():
    assert format_date(None) == ""
    assert format_date("") == ""


def test_format_currency():
    assert format_currency(1234.5) == "A$1,234.50"
    assert format_currency(-1234.555) == "-A$1,234.56"
    assert format_currency(1000, "USD") == "$1,000.00"
    assert format_currency(1500, "JPY") == "¥1,500"
    assert format_currency(5, "XYZ") == "XYZ 5.00"
    assert format_currency(None) == ""


def test_format_number_and_percentage():
    assert format_number(1234.567) == "1,234.57"
    assert format_number(2, 0) == "2"
    assert format_percentage(0.15) == "15.0%"
    assert format_percentage(0.8333) == "83.3%"
    assert format_percentage(None) == ""


def test_round_half_up():
    assert round_half_up(2.675, 2) == 2.68
    assert round_half_up(0.5) == 1.0
