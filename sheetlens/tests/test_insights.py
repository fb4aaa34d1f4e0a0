from __future__ import annotations

from shared.models.analysis import ColumnType, DataColumn
from shared.models.table import TableClassification, TableSection
from sheetlens.services.insights import InsightGenerator


def test_column_insights() -> None:
    columns = [
        DataColumn(name="Id", type=ColumnType.NUMBER, unique_count=3, is_key=True, min=1, max=3, avg=2),
        DataColumn(name="Valor", type=ColumnType.NUMBER, unique_count=2, min=1500, max=2500.5, avg=2000.25),
        DataColumn(name="Categoria", type=ColumnType.STRING, unique_count=2),
    ]
    rows = [{}, {}, {}]

    insights = InsightGenerator.generate(columns, rows)

    assert insights == [
        "Identificadas 1 coluna(s) chave: Id",
        "Id: Variação de 1 a 3, média 2",
        "Valor: Variação de 1,500 a 2,500.50, média 2,000.25",
        "Categoria: 2 categorias distintas - ideal para gráficos de pizza ou barras",
    ]


def test_many_unique_values_suggest_filtering() -> None:
    columns = [DataColumn(name="Cliente", type=ColumnType.STRING, unique_count=19)]

    insights = InsightGenerator.generate(columns, [{}] * 20)

    assert insights == ["Cliente: Muitas categorias únicas - pode ser melhor como filtro"]


def test_structural_insight_comes_first() -> None:
    sections = [
        TableSection(name="Despesas", rows=[["a", "1", "1", "0"], ["b", "2", "2", "0"]]),
        TableSection(name="Renda", rows=[["c", "3", "3", "0"]]),
    ]

    budget = InsightGenerator.generate([], [], TableClassification.BUDGET_LAYOUT, sections)
    report = InsightGenerator.generate(
        [], [], TableClassification.EXPENSE_REPORT, [TableSection(name="Transações", rows=[["x"]])]
    )
    plain = InsightGenerator.generate([], [], TableClassification.SIMPLE_TABLE, [])

    assert budget == ["Planilha de orçamento detectada com seções: Despesas (2 itens), Renda (1 itens)"]
    assert report == ["Relatório de despesas detectado com 1 transação(ões)"]
    assert plain == []
