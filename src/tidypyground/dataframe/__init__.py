"""Dataframe library built on top of tidypyground.

A dataframe library is a tool designed to handle and manipulate structured data,
typically in the form of tables (i.e., rows and columns).
It allows users to explore data, apply transformations, and analyze it.

Dataframes provide an efficient way to perform operations such as filtering,
aggregation, reshaping and merging of datasets.

Dataframes are becoming a widespread and convenient
way to perform analyses on data, they are now as widespread
as SQL as a way to run queries on data. The most commonly
used ones are probably ``pandas``, ``polars`` and R's ``dplyr``,
whose verbs (``pivot_wider``, ``left_join``, ``bind_rows``, ...)
are the names used by this library.

This module shows how to implement a custom dataframe library,
using the tidypyground compute capabilities as its foundation:

>>> flights = Dataframe.from_pydict({"carrier": ["AA", "ZZ"], "flight": [1141, 725]})
>>> airlines = Dataframe.from_pydict({"carrier": ["AA", "DL"], "name": ["American Airlines Inc.", "Delta Air Lines Inc."]})
>>> flights.left_join(airlines, by="carrier").replace_na({"name": "Unknown carrier"}).to_pydict()
{'carrier': ['AA', 'ZZ'], 'flight': [1141, 725], 'name': ['American Airlines Inc.', 'Unknown carrier']}
"""

from ..compute import AllExcept, all_except, col, lit
from .dataframe import Dataframe, bind_cols, bind_rows, setequal

__all__ = (
    "Dataframe",
    "bind_rows",
    "bind_cols",
    "setequal",
    "AllExcept",
    "all_except",
    "col",
    "lit",
)
