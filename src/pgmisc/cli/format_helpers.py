"""Plain-text layout helpers used by `format_text()` implementations."""

from __future__ import annotations

from itertools import zip_longest


def tabular(rows: list[list[str]], sep: str = "  ") -> str:
    """Left-align each column to its widest cell.

    >>> print(tabular([["PID", "OUTCOME"], ["4242", "delivered"], ["99999", "not_found"]]))
    PID    OUTCOME
    4242   delivered
    99999  not_found
    """
    columns = list(zip_longest(*rows, fillvalue=""))
    widths = [max(len(cell) for cell in column) for column in columns]
    return "\n".join(
        sep.join(cell.ljust(width) for cell, width in zip(cells, widths, strict=True)).rstrip()
        for cells in zip_longest(*columns, fillvalue="")
    )


def kv_block(pairs: list[tuple[str, str | None]]) -> str:
    """`key: value` lines; pairs whose value is None are left out.

    >>> print(kv_block([("pid", "4242"), ("warning", None), ("signaled", "true")]))
    pid: 4242
    signaled: true
    """
    return "\n".join(f"{key}: {value}" for key, value in pairs if value is not None)
