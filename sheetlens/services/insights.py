"""
Human-readable insights about an analysed table.
"""

from typing import Any, Dict, List, Optional, Sequence

from shared.models.analysis import ColumnType, DataColumn
from shared.models.table import TableClassification, TableSection


class InsightGenerator:
    """Portuguese one-line observations shown next to the chart suggestions"""

    FEW_CATEGORIES = 10
    MANY_UNIQUE_RATIO = 0.8

    @classmethod
    def generate(
        cls,
        columns: Sequence[DataColumn],
        rows: Sequence[Dict[str, Any]],
        classification: Optional[TableClassification] = None,
        sections: Optional[Sequence[TableSection]] = None,
    ) -> List[str]:
        insights: List[str] = []
        insights.extend(cls._structural_insights(classification, sections or []))

        keys = [c for c in columns if c.is_key]
        if keys:
            insights.append(
                f"Identificadas {len(keys)} coluna(s) chave: {', '.join(c.name for c in keys)}"
            )

        for col in columns:
            if col.type == ColumnType.NUMBER and col.min is not None and col.max is not None and col.avg is not None:
                insights.append(
                    f"{col.name}: Variação de {cls._fmt(col.min)} a {cls._fmt(col.max)}, média {cls._fmt(col.avg)}"
                )

        for col in columns:
            if col.type != ColumnType.STRING or col.is_key:
                continue
            if col.unique_count <= cls.FEW_CATEGORIES:
                insights.append(
                    f"{col.name}: {col.unique_count} categorias distintas - ideal para gráficos de pizza ou barras"
                )
            elif col.unique_count > len(rows) * cls.MANY_UNIQUE_RATIO:
                insights.append(f"{col.name}: Muitas categorias únicas - pode ser melhor como filtro")

        return insights

    @staticmethod
    def _structural_insights(
        classification: Optional[TableClassification], sections: Sequence[TableSection]
    ) -> List[str]:
        if classification == TableClassification.BUDGET_LAYOUT:
            if not sections:
                return ["Planilha de orçamento detectada (previsto x real)"]
            parts = ", ".join(f"{s.name} ({len(s.rows)} itens)" for s in sections)
            return [f"Planilha de orçamento detectada com seções: {parts}"]
        if classification == TableClassification.EXPENSE_REPORT:
            count = sum(len(s.rows) for s in sections)
            return [f"Relatório de despesas detectado com {count} transação(ões)"]
        if classification == TableClassification.COMPLEX_MULTI_SECTION:
            return [f"Estrutura complexa: {len(sections)} seção(ões) sem tabela reconhecível"]
        return []

    @staticmethod
    def _fmt(value: float) -> str:
        if value == int(value):
            return f"{int(value):,}"
        return f"{value:,.2f}"
