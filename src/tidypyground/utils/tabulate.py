"""Plain text rendering of tabular data.

Used by ``print(dataframe)``: a heading with the number
of rows and columns, then the column names and the
first rows, one per line.

    >>> import pyarrow as pa
    >>> data = {
    ...     "carrier": ["AA", "ZZ", "DL"],
    ...     "flight": [1141, 725, None],
    ...     "delay": [11.0, 20.5, -18.0],
    ... }
    >>> print(tabulate(pa.RecordBatch.from_pydict(data)))
    # 3 x 3
    carrier | flight | delay
    ------- | ------ | ------
    AA      | 1141   | 11.00
    ZZ      | 725    | 20.50
    DL      | NA     | -18.00
"""

import datetime
from typing import Any

import pyarrow as pa

MISSING = "NA"
MAX_CELL_WIDTH = 30


def tabulate(data: pa.RecordBatch | pa.Table, max_rows: int = 20) -> str:
    """Render up to ``max_rows`` rows of ``data`` as text.

    Rows past the limit are only counted::

        # 25 x 1
        carrier
        -------
        AA
        ...
        ... and 5 more rows
    """
    names = data.column_names
    cells = [
        [format_value(record[name]) for name in names]
        for record in data.slice(0, max_rows).to_pylist()
    ]
    widths = [
        max([len(name)] + [len(row[position]) for row in cells])
        for position, name in enumerate(names)
    ]

    lines = [
        f"# {data.num_rows} x {data.num_columns}",
        _line(names, widths),
        _line(["-"] * len(names), widths, fill="-"),
    ]
    lines.extend(_line(row, widths) for row in cells)
    if data.num_rows > max_rows:
        lines.append(f"... and {data.num_rows - max_rows} more rows")
    return "\n".join(lines)


def _line(cells: list[str], widths: list[int], fill: str = " ") -> str:
    padded = (cell.ljust(width, fill) for cell, width in zip(cells, widths))
    return " | ".join(padded).rstrip()


def format_value(v: Any) -> str:
    """Text of a single cell.

    Missing values read ``NA``, booleans ``TRUE``/``FALSE``,
    floats keep two decimals and timestamps use ISO format.
    Anything longer than 30 characters gets cut.
    """
    if v is None:
        return MISSING
    elif isinstance(v, bool):
        return "TRUE" if v else "FALSE"
    elif isinstance(v, float):
        return f"{v:.2f}"
    elif isinstance(v, datetime.datetime):
        return v.isoformat(sep=" ")

    text = str(v)
    if len(text) > MAX_CELL_WIDTH:
        text = text[: MAX_CELL_WIDTH - 3] + "..."
    return text
