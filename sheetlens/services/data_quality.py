"""
Data quality assessment.

Completeness/consistency scores over the extracted table, plus structural
counts (empty rows/columns, ragged rows) taken from the raw grid.
"""

from typing import Any, Dict, List, Sequence

from shared.models.analysis import DataColumn, DataQualityReport, StructuralQuality
from shared.utils.text_normalization import is_blank


class DataQualityAssessor:
    """Rule-based quality scoring; suggestions are advisory only"""

    COMPLETENESS_THRESHOLD = 70
    CONSISTENCY_THRESHOLD = 80
    NULL_RATE_LIMIT = 20
    SPARSE_THRESHOLD = 50

    INCOMPLETE_MESSAGE = "Dados incompletos - considere verificar células vazias"
    MANY_EMPTY_MESSAGE = "Algumas colunas têm muitos valores vazios"
    DUPLICATES_MESSAGE = 'Coluna "{name}" pode ter valores duplicados'

    @classmethod
    def assess(cls, columns: Sequence[DataColumn], rows: Sequence[Dict[str, Any]]) -> DataQualityReport:
        """
        Score a table.

        completeness = filled cells / (columns x rows) * 100, 0 without rows
        consistency = share of columns whose null rate is <= 20%, 100 without columns
        """
        row_count = len(rows)
        total_cells = len(columns) * row_count
        filled = sum(1 for col in columns for row in rows if not is_blank(row.get(col.name)))
        completeness = filled / total_cells * 100 if total_cells > 0 else 0.0

        noisy = 0
        if row_count > 0:
            noisy = sum(1 for col in columns if col.null_count / row_count * 100 > cls.NULL_RATE_LIMIT)
        consistency = (len(columns) - noisy) / len(columns) * 100 if columns else 100.0

        suggestions: List[str] = []
        if completeness < cls.COMPLETENESS_THRESHOLD:
            suggestions.append(cls.INCOMPLETE_MESSAGE)
        if consistency < cls.CONSISTENCY_THRESHOLD:
            suggestions.append(cls.MANY_EMPTY_MESSAGE)
        for col in columns:
            if col.is_key and col.unique_count != row_count:
                suggestions.append(cls.DUPLICATES_MESSAGE.format(name=col.name))

        return DataQualityReport(completeness=completeness, consistency=consistency, suggestions=suggestions)

    @classmethod
    def structural_quality(cls, headers: Sequence[str], raw_rows: Sequence[Sequence[Any]]) -> StructuralQuality:
        """Shape problems of the data rows as they appeared before cleaning."""
        width = len(headers)
        empty_rows = sum(1 for row in raw_rows if all(is_blank(cell) for cell in row))
        empty_columns = sum(
            1
            for index in range(width)
            if all(index >= len(row) or is_blank(row[index]) for row in raw_rows)
        )
        inconsistent = sum(1 for row in raw_rows if len(row) != width)

        filled = sum(1 for row in raw_rows for cell in row[:width] if not is_blank(cell))
        total = len(raw_rows) * width
        density = filled / total * 100 if total else 0.0

        suggestions: List[str] = []
        if empty_rows:
            suggestions.append(f"Remover {empty_rows} linha(s) vazia(s)")
        if empty_columns:
            suggestions.append(f"Remover {empty_columns} coluna(s) vazia(s)")
        if inconsistent:
            suggestions.append(f"Normalizar {inconsistent} linha(s) com tamanho inconsistente")
        if raw_rows and density < cls.SPARSE_THRESHOLD:
            suggestions.append("Dados muito esparsos - considere revisar a estrutura")

        return StructuralQuality(
            total_rows=len(raw_rows),
            total_columns=width,
            empty_rows=empty_rows,
            empty_columns=empty_columns,
            inconsistent_rows=inconsistent,
            suggestions=suggestions,
        )
