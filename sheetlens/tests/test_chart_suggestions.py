from __future__ import annotations

from shared.models.analysis import ChartType, ColumnType, DataColumn
from sheetlens.services.chart_suggestions import ChartSuggestionEngine


def _col(name: str, column_type: ColumnType, unique: int = 0) -> DataColumn:
    return DataColumn(name=name, type=column_type, unique_count=unique)


class TestChartSuggestionEngine:
    def test_region_sales(self) -> None:
        columns = [_col("Region", ColumnType.STRING, 3), _col("Sales", ColumnType.NUMBER, 10)]

        suggestions = ChartSuggestionEngine().suggest(columns, 10)

        assert [s.type for s in suggestions] == [ChartType.BAR, ChartType.PIE]
        bar, pie = suggestions
        assert bar.title == "Sales by Region"
        assert (bar.x_column, bar.y_column, bar.confidence) == ("Region", "Sales", 0.8)
        assert bar.description == "Compare Sales across different Region categories"
        assert pie.title == "Distribution of Region"
        assert pie.y_column is None
        assert pie.confidence == 0.7

    def test_ranking_is_stable_and_capped(self) -> None:
        columns = [
            _col("Date", ColumnType.DATE, 20),
            _col("Region", ColumnType.STRING, 4),
            _col("Sales", ColumnType.NUMBER, 20),
            _col("Cost", ColumnType.NUMBER, 20),
        ]

        suggestions = ChartSuggestionEngine().suggest(columns, 20)

        assert [s.type.value for s in suggestions] == ["line", "line", "bar", "bar", "area", "pie"]
        assert [s.y_column for s in suggestions[:4]] == ["Sales", "Cost", "Sales", "Cost"]
        area = suggestions[4]
        assert area.title == "Trends over time"
        assert (area.x_column, area.y_column) == ("Date", "Sales")

    def test_max_suggestions_is_configurable(self) -> None:
        columns = [_col("Region", ColumnType.STRING, 3), _col("Sales", ColumnType.NUMBER, 10)]

        assert len(ChartSuggestionEngine(max_suggestions=1).suggest(columns, 10)) == 1

    def test_high_cardinality_text_is_not_categorical(self) -> None:
        columns = [_col("Name", ColumnType.STRING, 5), _col("Sales", ColumnType.NUMBER, 10)]

        assert ChartSuggestionEngine().suggest(columns, 10) == []

    def test_single_category_gets_bar_but_no_pie(self) -> None:
        columns = [_col("Region", ColumnType.STRING, 1), _col("Sales", ColumnType.NUMBER, 10)]

        suggestions = ChartSuggestionEngine().suggest(columns, 10)

        assert [s.type for s in suggestions] == [ChartType.BAR]

    def test_scatter_for_each_numeric_pair(self) -> None:
        columns = [_col(n, ColumnType.NUMBER, 10) for n in ("A", "B", "C")]

        suggestions = ChartSuggestionEngine().suggest(columns, 10)

        assert [(s.x_column, s.y_column) for s in suggestions] == [("A", "B"), ("A", "C"), ("B", "C")]
        assert all(s.type == ChartType.SCATTER for s in suggestions)
        assert suggestions[0].title == "A vs B"

    def test_accepts_rows_instead_of_count(self) -> None:
        columns = [_col("Region", ColumnType.STRING, 5), _col("Sales", ColumnType.NUMBER, 1000)]
        rows = [{}] * 1000

        suggestions = ChartSuggestionEngine().suggest(columns, rows)

        assert [s.type for s in suggestions].count(ChartType.BAR) == 1
