"""
Sheet grid parser.

Converts uploaded spreadsheet sources into one normalized representation:
- grid: rows of display strings, A1-anchored (Excel) or in file order (CSV)
- sheet_names: every worksheet found in a workbook

Design principles:
- Keep parsing (I/O + format-specific quirks) separate from structure analysis.
- Cells are display strings; numeric meaning is recovered downstream.
- Excel failures fall back to reading the same bytes as CSV text.
"""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from shared.exceptions import MalformedSpreadsheetError
from shared.models.sheet_grid import SheetGrid
from shared.utils.app_logger import get_logger

logger = get_logger(__name__)

EXCEL_FALLBACK_WARNING = "Excel parsing failed; content parsed as CSV"


@dataclass(frozen=True)
class SheetGridParseOptions:
    """Options shared across parsers."""

    trim_trailing_empty: bool = True
    max_rows: Optional[int] = None
    max_cols: Optional[int] = None

    # CSV-specific
    csv_delimiter: str = "auto"

    # Excel-specific
    excel_data_only: bool = True


class SheetGridParser:
    """Parsers for Excel workbooks and CSV text into SheetGrid."""

    # "R$" must be checked before "$"
    _CURRENCY_SYMBOLS = ("R$", "₩", "¥", "￥", "$", "€", "£", "₹", "₽", "฿", "₫", "₱", "₪")

    _SPREADSHEET_MIME_HINTS = ("spreadsheetml", "ms-excel")
    _SPREADSHEET_EXTENSIONS = (".xlsx", ".xlsm", ".xls")
    _CSV_DELIMITERS = (",", ";", "\t", "|")

    @classmethod
    def is_spreadsheet(cls, filename: Optional[str], mime_type: Optional[str]) -> bool:
        mime = (mime_type or "").lower()
        if any(hint in mime for hint in cls._SPREADSHEET_MIME_HINTS):
            return True
        return (filename or "").lower().endswith(cls._SPREADSHEET_EXTENSIONS)

    @classmethod
    def parse_upload(
        cls,
        raw: bytes,
        *,
        filename: Optional[str] = None,
        mime_type: Optional[str] = None,
        options: Optional[SheetGridParseOptions] = None,
    ) -> SheetGrid:
        """
        Parse uploaded bytes, choosing Excel or CSV from the name/MIME type.

        A workbook that cannot be read is retried as CSV text; the returned grid
        then carries EXCEL_FALLBACK_WARNING.
        """
        opts = options or SheetGridParseOptions()
        meta = {"filename": filename or "", "mime_type": mime_type or ""}

        if cls.is_spreadsheet(filename, mime_type):
            try:
                return cls.from_excel_bytes(raw, options=opts, metadata=meta)
            except MalformedSpreadsheetError as e:
                logger.warning(f"Excel parsing failed for {filename!r}, falling back to CSV: {e}")
                grid = cls.from_csv_text(cls.decode_text(raw), options=opts, metadata=meta)
                grid.warnings.append(EXCEL_FALLBACK_WARNING)
                return grid

        return cls.from_csv_text(cls.decode_text(raw), options=opts, metadata=meta)

    @classmethod
    def parse_text_upload(
        cls,
        text: str,
        *,
        filename: Optional[str] = None,
        mime_type: Optional[str] = None,
        options: Optional[SheetGridParseOptions] = None,
    ) -> SheetGrid:
        """
        Parse content delivered as text.

        Workbooks arrive as binary strings (one code point per byte); anything else
        is CSV text and is parsed as-is.
        """
        opts = options or SheetGridParseOptions()
        meta = {"filename": filename or "", "mime_type": mime_type or ""}

        if not cls.is_spreadsheet(filename, mime_type):
            return cls.from_csv_text(text, options=opts, metadata=meta)

        try:
            return cls.from_excel_bytes(text.encode("latin-1"), options=opts, metadata=meta)
        except UnicodeEncodeError:
            logger.warning(f"{filename!r} is not a binary string, falling back to CSV")
        except MalformedSpreadsheetError as e:
            logger.warning(f"Excel parsing failed for {filename!r}, falling back to CSV: {e}")

        grid = cls.from_csv_text(text, options=opts, metadata=meta)
        grid.warnings.append(EXCEL_FALLBACK_WARNING)
        return grid

    @staticmethod
    def decode_text(raw: bytes) -> str:
        return raw.decode("utf-8-sig", errors="replace")

    # -------------------------
    # CSV
    # -------------------------

    @classmethod
    def from_csv_text(
        cls,
        text: str,
        *,
        options: Optional[SheetGridParseOptions] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SheetGrid:
        """
        Parse delimited text.

        Quoted fields may contain the delimiter; doubled quotes unescape to one.
        Blank lines are dropped and every cell is trimmed.
        """
        opts = options or SheetGridParseOptions()
        delimiter = opts.csv_delimiter
        if not delimiter or delimiter == "auto":
            delimiter = cls.detect_delimiter(text)

        reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
        grid: List[List[str]] = []
        for row in reader:
            if not row or (len(row) == 1 and not row[0].strip()):
                continue
            grid.append([cell.strip() for cell in row])
            if opts.max_rows is not None and len(grid) >= int(opts.max_rows):
                break

        if opts.max_cols is not None:
            grid = [row[: int(opts.max_cols)] for row in grid]

        rows = len(grid)
        cols = max((len(r) for r in grid), default=0)
        return SheetGrid(
            source="csv",
            sheet_name=None,
            sheet_names=[],
            grid=grid,
            metadata={"rows": rows, "cols": cols, "delimiter": delimiter, **(metadata or {})},
            warnings=[],
        )

    @classmethod
    def detect_delimiter(cls, text: str) -> str:
        """Pick the candidate delimiter occurring most often (outside quotes) in the first line."""
        first_line = ""
        for line in text.splitlines():
            if line.strip():
                first_line = line
                break
        if not first_line:
            return ","

        unquoted = re.sub(r'"[^"]*"', "", first_line)
        best, best_count = ",", 0
        for candidate in cls._CSV_DELIMITERS:
            count = unquoted.count(candidate)
            if count > best_count:
                best, best_count = candidate, count
        return best

    # -------------------------
    # Excel
    # -------------------------

    @classmethod
    def from_excel_bytes(
        cls,
        xlsx_bytes: bytes,
        *,
        sheet_name: Optional[str] = None,
        options: Optional[SheetGridParseOptions] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SheetGrid:
        """
        Parse an .xlsx workbook into SheetGrid.

        Without an explicit sheet_name the worksheet with the most non-empty rows
        is used (first sheet wins ties). Requires openpyxl.
        """
        opts = options or SheetGridParseOptions()
        warnings: List[str] = []

        try:
            from openpyxl import load_workbook  # type: ignore
        except Exception as e:  # pragma: no cover
            raise RuntimeError(
                "Excel parsing requires 'openpyxl'. Install it to enable .xlsx support."
            ) from e

        try:
            wb = load_workbook(
                filename=io.BytesIO(xlsx_bytes),
                data_only=bool(opts.excel_data_only),
                read_only=False,
            )
        except Exception as e:
            raise MalformedSpreadsheetError(str(e) or type(e).__name__) from e

        sheet_names = [str(n) for n in wb.sheetnames]
        if not sheet_names:
            raise MalformedSpreadsheetError("workbook has no worksheets")

        if sheet_name and sheet_name in wb.sheetnames:
            best_name = sheet_name
            best_grid = cls._read_worksheet(wb[sheet_name], opts)
        else:
            best_name, best_grid, best_rows = sheet_names[0], None, -1
            for name in sheet_names:
                grid = cls._read_worksheet(wb[name], opts)
                non_empty = sum(1 for row in grid if any(cell.strip() for cell in row))
                if non_empty > best_rows:
                    best_name, best_grid, best_rows = name, grid, non_empty

        grid = best_grid or []
        if opts.trim_trailing_empty:
            grid, trim_meta = cls._trim_trailing_empty(grid)
            if trim_meta.get("trimmed"):
                warnings.append("Trailing empty rows/cols trimmed")

        rows = len(grid)
        cols = max((len(r) for r in grid), default=0)
        return SheetGrid(
            source="excel",
            sheet_name=best_name,
            sheet_names=sheet_names,
            grid=grid,
            metadata={"rows": rows, "cols": cols, **(metadata or {})},
            warnings=warnings,
        )

    @classmethod
    def _read_worksheet(cls, ws: Any, opts: SheetGridParseOptions) -> List[List[str]]:
        max_row = int(ws.max_row or 0)
        max_col = int(ws.max_column or 0)
        if opts.max_rows is not None:
            max_row = min(max_row, int(opts.max_rows))
        if opts.max_cols is not None:
            max_col = min(max_col, int(opts.max_cols))
        if max_row <= 0 or max_col <= 0:
            return []

        grid: List[List[str]] = []
        for r in range(1, max_row + 1):
            grid.append(
                [cls._excel_cell_to_display_value(ws.cell(row=r, column=c)) for c in range(1, max_col + 1)]
            )
        return grid

    @classmethod
    def _trim_trailing_empty(cls, grid: List[List[str]]) -> Tuple[List[List[str]], Dict[str, Any]]:
        if not grid:
            return grid, {"trimmed": False}

        rows = len(grid)
        cols = max((len(r) for r in grid), default=0)

        def is_blank(v: Any) -> bool:
            return v is None or str(v).strip() == ""

        bottom = rows - 1
        while bottom >= 0 and all(is_blank(v) for v in grid[bottom]):
            bottom -= 1

        right = cols - 1
        while right >= 0:
            if all(right >= len(grid[r]) or is_blank(grid[r][right]) for r in range(0, bottom + 1)):
                right -= 1
            else:
                break

        trimmed = (bottom != rows - 1) or (right != cols - 1)
        new_grid = [row[: right + 1] for row in grid[: bottom + 1]]
        return new_grid, {"trimmed": trimmed, "rows": bottom + 1, "cols": right + 1}

    # -------------------------
    # Excel display formatting
    # -------------------------

    @classmethod
    def _excel_cell_to_display_value(cls, cell: Any) -> str:
        """
        Best-effort conversion of an openpyxl cell into its display string.

        Currency/percent formats live in number_format; the raw number loses the symbol.
        """
        value = getattr(cell, "value", None)
        if value is None:
            return ""

        if isinstance(value, bool):
            return "true" if value else "false"

        if isinstance(value, datetime):
            # Excel often stores date as datetime midnight
            if value.hour == 0 and value.minute == 0 and value.second == 0 and value.microsecond == 0:
                return value.date().isoformat()
            return value.isoformat(sep=" ")

        if isinstance(value, (date, time)):
            return value.isoformat()

        if isinstance(value, (int, float, Decimal)):
            fmt = str(getattr(cell, "number_format", "") or "")
            return cls._format_excel_number(value, fmt)

        return str(value).strip()

    @classmethod
    def _format_excel_number(cls, value: Any, fmt: str) -> str:
        """Render a number without grouping separators so it parses the same in any locale."""
        s = str(fmt or "")

        # Percent formats: stored as a fraction (0.3) -> display 30%
        if "%" in s:
            try:
                return f"{float(value) * 100:g}%"
            except (TypeError, ValueError):
                return f"{value}%"

        try:
            num = float(value)
        except (TypeError, ValueError):
            return str(value)

        decimal_places = cls._infer_decimal_places_from_format(s)
        if decimal_places is None or decimal_places <= 0:
            if abs(num - round(num)) < 1e-9:
                core = str(int(round(num)))
            else:
                core = f"{num:.6f}".rstrip("0").rstrip(".")
        else:
            core = f"{num:.{decimal_places}f}"

        prefix = cls._detect_currency_prefix(s)
        return f"{prefix} {core}" if prefix else core

    @classmethod
    def _detect_currency_prefix(cls, fmt: str) -> str:
        # Bracket notation first: [$R$-416], [$€-407]
        m = re.search(r"\[\$([^\]-]+)", fmt)
        if m:
            token = m.group(1).strip()
            if token in cls._CURRENCY_SYMBOLS:
                return token

        unquoted = fmt.replace('"', "")
        for sym in cls._CURRENCY_SYMBOLS:
            if sym in unquoted:
                return sym
        return ""

    @staticmethod
    def _infer_decimal_places_from_format(fmt: str) -> Optional[int]:
        # Take the positive section before ';'
        section = fmt.split(";", 1)[0]

        # Remove quoted strings and bracket directives (locale/currency)
        section = re.sub(r"\"[^\"]*\"", "", section)
        section = re.sub(r"\[[^\]]+\]", "", section)

        m = re.search(r"[#0]+\.([0#]+)", section)
        if not m:
            return 0 if re.search(r"[#0]", section) else None

        decimals = m.group(1)
        mandatory = decimals.count("0")
        if mandatory > 0:
            return mandatory
        return len(decimals)
