"""
🔥 THINK ULTRA! Table Extractor
Recovers headers, data rows and a structural classification from loosely
structured spreadsheet grids (title rows, budget blocks, report headers...).

Detection order (first match wins):
1. Budget layout: a planned/actual header followed by monetary rows
2. Data table: keyword-scored header row followed by numeric rows
   (an expense report when report/expense words appear in the sheet)
3. Generic fallback: first row with >=2 cells and some text
4. First-row fallback: row 0 (or Column_N) as headers; a grid whose values
   all sit in one column keeps only that column
5. Multi-section: every non-empty row becomes its own section
"""

from typing import Dict, List, Optional, Sequence

from shared.config.settings import IngestionSettings
from shared.models.table import ExtractedTable, TableClassification, TableSection
from shared.utils.app_logger import get_logger
from shared.utils.text_normalization import contains_any, fold_text, is_blank

from sheetlens.services.cell_normalizer import CellNormalizer

logger = get_logger(__name__)

Row = List[str]


class TableExtractor:
    """
    Heuristic header/body splitter for raw spreadsheet grids.

    REPORT_KEYWORDS alone decide the expense-report classification; the
    date/category/value words in HEADER_KEYWORDS only score header rows.
    """

    # Keywords are accent-folded and lower-cased; matching is substring based.
    PLANNED_KEYWORDS = ("previsto", "planejado", "orcado", "estimado", "planned", "budget", "estimated")
    ACTUAL_KEYWORDS = ("realizado", "real", "gasto", "actual", "spent")
    EXPENSE_SECTION_KEYWORDS = ("despesas", "despesa", "gastos", "expenses")
    INCOME_SECTION_KEYWORDS = ("renda", "receitas", "receita", "income")
    TOTAL_KEYWORDS = ("totais", "total", "totals")

    HEADER_KEYWORDS = (
        "data", "date",
        "categoria", "category",
        "descricao", "description",
        "valor", "value", "amount",
        "nome", "name",
        "codigo", "code",
        "quantidade", "quantity", "qtd",
        "preco", "price",
        "total",
        "departamento", "department",
        "funcionario", "employee",
        "cliente", "client", "customer",
    )
    REPORT_KEYWORDS = ("relatorio", "report", "despesa", "expense", "reembolso", "reimbursement")

    BUDGET_HEADERS = ["Categoria", "Previsto", "Real", "Diferença"]
    EXPENSE_SECTION_NAME = "Despesas"
    INCOME_SECTION_NAME = "Renda"
    TRANSACTIONS_SECTION_NAME = "Transações"
    MULTI_SECTION_WIDTH = 4

    MAX_HEADER_CELL_LENGTH = 30
    MIN_HEADER_SCORE = 3

    def __init__(
        self,
        normalizer: Optional[CellNormalizer] = None,
        settings: Optional[IngestionSettings] = None,
    ):
        self.settings = settings or IngestionSettings()
        self.normalizer = normalizer or CellNormalizer.from_settings(self.settings)

    # ---------------------------
    # Entry point
    # ---------------------------

    def extract(self, raw_rows: Sequence[Sequence[str]]) -> ExtractedTable:
        """
        Split a raw grid into headers and rows.

        Returns:
            ExtractedTable; `sections` holds any named sub-tables
        """
        rows = [["" if cell is None else str(cell).strip() for cell in row] for row in raw_rows]
        if not any(self._non_empty_count(row) for row in rows):
            return ExtractedTable(strategy="empty")

        budget = self._extract_budget_layout(rows)
        if budget is not None:
            return budget

        header_index = self.detect_data_table(rows)
        if header_index is not None:
            headers = self._build_headers(rows[header_index])
            body = self._clean_rows(rows[header_index + 1:], len(headers))
            if self._has_report_keywords(rows):
                logger.info(f"Expense report detected (header row {header_index})")
                return ExtractedTable(
                    headers=headers,
                    header_row_index=header_index,
                    data_start_index=header_index + 1,
                    rows=body,
                    classification=TableClassification.EXPENSE_REPORT,
                    strategy="data_table",
                    sections=[TableSection(name=self.TRANSACTIONS_SECTION_NAME, headers=headers, rows=body)],
                )
            return ExtractedTable(
                headers=headers,
                header_row_index=header_index,
                data_start_index=header_index + 1,
                rows=body,
                classification=TableClassification.SIMPLE_TABLE,
                strategy="data_table",
            )

        header_index = self._generic_header_scan(rows)
        if header_index is not None:
            headers = self._build_headers(rows[header_index])
            logger.info(f"Generic header fallback used (header row {header_index})")
            return ExtractedTable(
                headers=headers,
                header_row_index=header_index,
                data_start_index=header_index + 1,
                rows=self._clean_rows(rows[header_index + 1:], len(headers)),
                classification=TableClassification.SIMPLE_TABLE,
                strategy="generic_fallback",
            )

        # A single column of values is still a table: keep just that column
        column = self._single_aligned_column(rows)
        if column is not None:
            rows = [[row[column] if column < len(row) else ""] for row in rows]

        if column is not None or any(self._non_empty_count(row) >= 2 for row in rows):
            start = 0
            if column is not None:
                start = next(i for i, row in enumerate(rows) if self._non_empty_count(row))
            width = max(len(row) for row in rows)
            first = rows[start]
            headers = self._dedupe_headers(
                [first[i] if i < len(first) and first[i] else f"Column_{i + 1}" for i in range(width)]
            )
            logger.info(f"First-row header fallback used (header row {start})")
            return ExtractedTable(
                headers=headers,
                header_row_index=start,
                data_start_index=start + 1,
                rows=self._clean_rows(rows[start + 1:], len(headers)),
                classification=TableClassification.SIMPLE_TABLE,
                strategy="first_row_fallback",
            )

        return self._extract_multi_section(rows)

    # ---------------------------
    # Budget layout
    # ---------------------------

    def _extract_budget_layout(self, rows: List[Row]) -> Optional[ExtractedTable]:
        header_index = self._find_budget_header(rows)
        if header_index is None:
            return None

        sections = self._extract_budget_sections(rows)
        if sections:
            body = [row for section in sections for row in section.rows]
        else:
            body = [self._budget_row(row) for row in rows[header_index + 1:] if self._has_monetary(row)]
        body = [row for row in body if any(cell != "" for cell in row)]

        logger.info(
            f"Budget layout detected (header row {header_index}, sections={[s.name for s in sections]})"
        )
        return ExtractedTable(
            headers=list(self.BUDGET_HEADERS),
            header_row_index=header_index,
            data_start_index=header_index + 1,
            rows=body,
            classification=TableClassification.BUDGET_LAYOUT,
            strategy="budget_layout",
            sections=sections,
        )

    def _find_budget_header(self, rows: List[Row]) -> Optional[int]:
        lookahead = self.settings.budget_lookahead_rows
        for i, row in enumerate(rows):
            has_planned = any(contains_any(cell, self.PLANNED_KEYWORDS) for cell in row)
            has_actual = any(contains_any(cell, self.ACTUAL_KEYWORDS) for cell in row)
            if not (has_planned and has_actual):
                continue
            for candidate in rows[i + 1: i + 1 + lookahead]:
                if candidate and not is_blank(candidate[0]) and self._has_monetary(candidate):
                    return i
        return None

    def _extract_budget_sections(self, rows: List[Row]) -> List[TableSection]:
        sections: List[TableSection] = []
        i = 0
        while i < len(rows):
            name = self._section_name(rows[i])
            if name is None:
                i += 1
                continue

            j = i + 1
            # Sub-headers between the section title and its first amount
            skipped = 0
            while j < len(rows) and not self._has_monetary(rows[j]) and skipped < self.settings.budget_lookahead_rows:
                if self._is_total_row(rows[j]) or self._section_name(rows[j]) is not None:
                    break
                j += 1
                skipped += 1

            section_rows: List[Row] = []
            while j < len(rows):
                row = rows[j]
                if self._is_total_row(row) or not self._has_monetary(row):
                    break
                section_rows.append(self._budget_row(row))
                j += 1

            if section_rows:
                sections.append(TableSection(name=name, headers=list(self.BUDGET_HEADERS), rows=section_rows))
            i = max(j, i + 1)
        return sections

    def _section_name(self, row: Row) -> Optional[str]:
        if self._has_monetary(row):
            return None
        first = self._first_non_empty(row)
        if first is None:
            return None
        folded = fold_text(first)
        if any(k in folded for k in self.EXPENSE_SECTION_KEYWORDS):
            return self.EXPENSE_SECTION_NAME
        if any(k in folded for k in self.INCOME_SECTION_KEYWORDS):
            return self.INCOME_SECTION_NAME
        return None

    def _is_total_row(self, row: Row) -> bool:
        first = self._first_non_empty(row)
        if first is None:
            return False
        folded = fold_text(first)
        return any(folded.startswith(k) for k in self.TOTAL_KEYWORDS)

    def _budget_row(self, row: Row) -> Row:
        """[category, planned, actual, difference] with missing amounts as "0"."""
        category = ""
        amounts: List[str] = []
        for cell in row:
            if is_blank(cell):
                continue
            if self.normalizer.is_monetary(cell):
                if len(amounts) < 3:
                    amounts.append(self.normalizer.normalize(cell))
            elif not category:
                category = cell.strip()
        amounts.extend(["0"] * (3 - len(amounts)))
        return [category] + amounts

    # ---------------------------
    # Data table detection
    # ---------------------------

    def detect_data_table(self, rows: Sequence[Row]) -> Optional[int]:
        """Index of the first keyword-scored header row followed by numeric rows, if any."""
        lookahead = self.settings.header_lookahead_rows
        for i, row in enumerate(rows[: self.settings.header_scan_rows]):
            if self.score_header_row(row) < self.MIN_HEADER_SCORE:
                continue
            following = rows[i + 1: i + 1 + lookahead]
            if any(self._has_numeric(candidate) for candidate in following):
                return i
        return None

    def score_header_row(self, row: Sequence[str]) -> int:
        score = 0
        for cell in row:
            if is_blank(cell):
                continue
            text = str(cell).strip()
            if contains_any(text, self.HEADER_KEYWORDS):
                score += 2
            if len(text) < self.MAX_HEADER_CELL_LENGTH and not self._is_number_like(text):
                score += 1
        return score

    def _has_report_keywords(self, rows: List[Row]) -> bool:
        return any(contains_any(cell, self.REPORT_KEYWORDS) for row in rows for cell in row)

    # ---------------------------
    # Fallbacks
    # ---------------------------

    def _generic_header_scan(self, rows: List[Row]) -> Optional[int]:
        for i, row in enumerate(rows[: self.settings.fallback_scan_rows]):
            cells = [cell for cell in row if not is_blank(cell)]
            if len(cells) >= 2 and any(not self._is_number_like(cell) for cell in cells):
                return i
        return None

    def _extract_multi_section(self, rows: List[Row]) -> ExtractedTable:
        sections: List[TableSection] = []
        body: List[Row] = []
        for row in rows:
            if not self._non_empty_count(row):
                continue
            width = self._last_non_empty_index(row) + 1
            cells = [self.normalizer.normalize(cell) for cell in row[:width]]
            sections.append(
                TableSection(
                    name=f"Seção {len(sections) + 1}",
                    headers=[f"Campo_{n + 1}" for n in range(width)],
                    rows=[cells],
                )
            )
            body.append(self._fit([cell for cell in cells if cell], self.MULTI_SECTION_WIDTH))

        logger.info(f"No tabular structure found; {len(sections)} single-row sections extracted")
        return ExtractedTable(
            headers=[f"Campo_{n + 1}" for n in range(self.MULTI_SECTION_WIDTH)],
            header_row_index=None,
            data_start_index=0,
            rows=body,
            classification=TableClassification.COMPLEX_MULTI_SECTION,
            strategy="multi_section",
            sections=sections,
        )

    # ---------------------------
    # Row helpers
    # ---------------------------

    def _build_headers(self, row: Row) -> List[str]:
        headers = [cell.strip() or f"Column_{i + 1}" for i, cell in enumerate(row)]
        return self._dedupe_headers(headers[: self._last_non_empty_index(row) + 1])

    def _clean_rows(self, rows: Sequence[Row], width: int) -> List[Row]:
        cleaned: List[Row] = []
        for row in rows:
            if not self._non_empty_count(row):
                continue
            normalized = self._fit([self.normalizer.normalize(cell) for cell in row], width)
            if any(cell != "" for cell in normalized):
                cleaned.append(normalized)
        return cleaned

    @staticmethod
    def _fit(row: Row, width: int) -> Row:
        if len(row) >= width:
            return row[:width]
        return row + [""] * (width - len(row))

    @classmethod
    def _dedupe_headers(cls, headers: List[str]) -> List[str]:
        seen: Dict[str, int] = {}
        out: List[str] = []
        for h in headers:
            base = h.strip() or "column"
            key = base.lower()
            n = seen.get(key, 0) + 1
            seen[key] = n
            out.append(base if n == 1 else f"{base}_{n}")
        return out

    def _has_monetary(self, row: Row) -> bool:
        return any(self.normalizer.is_monetary(cell) for cell in row)

    def _has_numeric(self, row: Row) -> bool:
        return any(self._is_number_like(cell) for cell in row if not is_blank(cell))

    def _is_number_like(self, text: str) -> bool:
        return self.normalizer.is_numeric(text) or self.normalizer.is_monetary(text) or self.normalizer.is_percent(text)

    @staticmethod
    def _single_aligned_column(rows: List[Row]) -> Optional[int]:
        """Column index shared by every non-empty row when each holds exactly one value."""
        columns = set()
        for row in rows:
            filled = [i for i, cell in enumerate(row) if not is_blank(cell)]
            if len(filled) > 1:
                return None
            columns.update(filled)
        return columns.pop() if len(columns) == 1 else None

    @staticmethod
    def _non_empty_count(row: Row) -> int:
        return sum(1 for cell in row if not is_blank(cell))

    @staticmethod
    def _first_non_empty(row: Row) -> Optional[str]:
        for cell in row:
            if not is_blank(cell):
                return cell
        return None

    @staticmethod
    def _last_non_empty_index(row: Row) -> int:
        for i in range(len(row) - 1, -1, -1):
            if not is_blank(row[i]):
                return i
        return 0

