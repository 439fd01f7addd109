import datetime

import pyarrow as pa

from tidypyground.utils.tabulate import format_value, tabulate


def test_tabulate_table():
    table = pa.table(
        {
            "carrier": ["AA", "ZZ"],
            "name": ["American Airlines Inc.", None],
        }
    )
    assert tabulate(table) == "\n".join(
        [
            "# 2 x 2",
            "carrier | name",
            "------- | ----------------------",
            "AA      | American Airlines Inc.",
            "ZZ      | NA",
        ]
    )


def test_tabulate_truncates_rows():
    table = pa.table({"day": list(range(5))})
    text = tabulate(table, max_rows=2)
    assert text.splitlines() == ["# 5 x 1", "day", "---", "0", "1", "... and 3 more rows"]


def test_format_value():
    assert format_value(None) == "NA"
    assert format_value(True) == "TRUE"
    assert format_value(-3.5) == "-3.50"
    assert format_value(datetime.datetime(2013, 1, 1, 5)) == "2013-01-01 05:00:00"
    assert format_value("x" * 40) == "x" * 27 + "..."
