from __future__ import annotations

import csv
import re
from io import StringIO
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from query_bridge.data.result import Cell, TabularResult
from query_bridge.exceptions.errors import DecodeError
from query_bridge.logging.logger import get_logger

log = get_logger("db.decoder")

_LINE_RE = re.compile(r"line (\d+)")


def _line_offset(text: str, line_no: int) -> int:
    """Byte offset (UTF-8) of the start of 1-based physical line ``line_no``."""
    offset = 0
    for i, line in enumerate(text.split("\n"), start=1):
        if i >= line_no:
            break
        offset += len(line.encode("utf-8")) + 1
    return offset


def _content_line_numbers(text: str) -> List[int]:
    # pandas drops blank lines; keep the physical numbers of the ones it reads.
    return [i for i, line in enumerate(text.split("\n"), start=1) if line.strip()]


def decode(framed: Union[str, bytes], delimiter: str = ",") -> TabularResult:
    """Parse framed delimited text into a TabularResult.

    Quoting is disabled: a ``"`` inside a value is literal data, never a field
    boundary. The first row is the header, the rest are data rows. Ragged rows
    raise DecodeError with the byte offset of the offending line.
    """
    if isinstance(framed, bytes):
        try:
            text = framed.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Output is not valid UTF-8: {e.reason}", offset=e.start) from e
    else:
        text = framed or ""

    if not text.strip():
        return TabularResult.empty()

    try:
        df = pd.read_csv(
            StringIO(text),
            sep=delimiter,
            header=None,
            dtype=object,
            na_filter=False,
            quoting=csv.QUOTE_NONE,
            engine="python",
            skip_blank_lines=True,
        )
    except pd.errors.ParserError as e:
        m = _LINE_RE.search(str(e))
        line_no = int(m.group(1)) if m else None
        offset = _line_offset(text, line_no) if line_no else None
        raise DecodeError(f"Malformed tabular output: {e}", offset=offset, line=line_no) from e
    except pd.errors.EmptyDataError:
        return TabularResult.empty()

    # The python engine pads short rows with missing values; with na_filter off
    # real empty fields stay "", so any NA here is a short row.
    short = df.isna().any(axis=1)
    if short.any():
        row_idx = int(short.to_numpy().nonzero()[0][0])
        lines = _content_line_numbers(text)
        line_no = lines[row_idx] if row_idx < len(lines) else None
        offset = _line_offset(text, line_no) if line_no else None
        raise DecodeError(
            f"Malformed tabular output: row {row_idx} has fewer than {df.shape[1]} fields",
            offset=offset,
            line=line_no,
        )

    values = df.values.tolist()
    columns = [str(c) for c in values[0]]
    rows: List[List[Cell]] = [[str(c) for c in r] for r in values[1:]]
    log.debug("Decoded tabular output", extra={"columns": len(columns), "rows": len(rows)})
    return TabularResult(columns=columns, rows=rows)


def _cells(row: Dict[str, Any]) -> List[Cell]:
    return [d.get("VarCharValue") for d in row.get("Data", [])]


def rows_from_athena(
    result_set: Optional[Dict[str, Any]],
    drop_header_echo: bool = True,
    columns: Optional[List[str]] = None,
) -> TabularResult:
    """Normalize one Athena ``ResultSet`` page.

    Column names come from ``ResultSetMetadata``; when that is missing the first
    row is taken as the header. SELECT results repeat the header as the first
    row of the first page, which is dropped when ``drop_header_echo`` is set.

    Continuation pages pass the first page's ``columns``: every row on them is
    data, whatever metadata the page carries.
    """
    if not result_set:
        return TabularResult.empty() if columns is None else TabularResult(columns=list(columns), rows=[])

    raw_rows = [_cells(r) for r in result_set.get("Rows") or []]
    if columns is not None:
        return TabularResult(columns=list(columns), rows=raw_rows)

    col_info = (result_set.get("ResultSetMetadata") or {}).get("ColumnInfo") or []
    columns = [c.get("Name", "") for c in col_info]

    if not columns:
        if not raw_rows:
            return TabularResult.empty()
        columns = [c or "" for c in raw_rows[0]]
        raw_rows = raw_rows[1:]
    elif drop_header_echo and raw_rows and raw_rows[0] == columns:
        raw_rows = raw_rows[1:]

    return TabularResult(columns=columns, rows=raw_rows)
