"""
Chart Data Aggregator
Reshapes stored rows into chart-ready series: filtering, grouping,
aggregation and point limiting.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence

from shared.exceptions import (
    InvalidFilterError,
    UnsupportedAggregateFunctionError,
    UnsupportedChartTypeError,
)
from shared.models.analysis import AggregateFunction, ChartType, DataFilter, FilterOperator
from shared.utils.app_logger import get_logger
from shared.utils.text_normalization import is_blank

from sheetlens.services.cell_normalizer import CellNormalizer

logger = get_logger(__name__)

Record = Dict[str, Any]


class ChartDataBuilder:
    """Builds ChartSeries (lists of plain records) from table rows"""

    SUPPORTED_CHART_TYPES = [t.value for t in ChartType]
    SUPPORTED_AGGREGATES = [a.value for a in AggregateFunction]
    SUPPORTED_OPERATORS = [o.value for o in FilterOperator]

    def __init__(self, normalizer: Optional[CellNormalizer] = None, max_points: int = 100):
        self.normalizer = normalizer or CellNormalizer()
        self.max_points = max_points

    # ---------------------------
    # Series
    # ---------------------------

    def build_series(
        self,
        rows: Sequence[Record],
        chart_type: str,
        x_column: str,
        y_column: Optional[str] = None,
        aggregate_function: str = AggregateFunction.SUM.value,
    ) -> List[Record]:
        """Series capped at `max_points`, keeping the first points in build order."""
        return self.build_points(rows, chart_type, x_column, y_column, aggregate_function)[: self.max_points]

    def build_points(
        self,
        rows: Sequence[Record],
        chart_type: str,
        x_column: str,
        y_column: Optional[str] = None,
        aggregate_function: str = AggregateFunction.SUM.value,
    ) -> List[Record]:
        """
        Uncapped series for one chart.

        - pie, or any type without y_column: occurrence count per distinct x value
        - bar: rows grouped by x, y aggregated per group
        - line / area: one point per row, in row order
        - scatter: one point per row with both coordinates numeric
        """
        kind = self.resolve_chart_type(chart_type)
        aggregate = self.resolve_aggregate(aggregate_function)

        if kind == ChartType.PIE or not y_column:
            points = self._count_by(rows, x_column)
        elif kind == ChartType.BAR:
            points = self._group_and_aggregate(rows, x_column, y_column, aggregate)
        elif kind in (ChartType.LINE, ChartType.AREA):
            points = self._per_row(rows, x_column, y_column)
        else:
            points = self._scatter(rows, x_column, y_column)

        logger.debug(f"{kind.value} series for {x_column}/{y_column}: {len(points)} points from {len(rows)} rows")
        return points

    def _count_by(self, rows: Sequence[Record], x_column: str) -> List[Record]:
        counts: Dict[str, int] = {}
        for row in rows:
            value = row.get(x_column)
            if is_blank(value):
                continue
            key = str(value)
            counts[key] = counts.get(key, 0) + 1
        return [{"name": name, "value": count} for name, count in counts.items()]

    def _group_and_aggregate(
        self, rows: Sequence[Record], x_column: str, y_column: str, aggregate: AggregateFunction
    ) -> List[Record]:
        groups: Dict[str, List[float]] = {}
        for row in rows:
            value = row.get(x_column)
            if is_blank(value):
                continue
            groups.setdefault(str(value), []).append(self.normalizer.to_float(row.get(y_column)))

        reducer = self._reducer(aggregate)
        series: List[Record] = []
        for name, values in groups.items():
            result = reducer(values)
            series.append({"name": name, "value": result, y_column: result})
        return series

    def _per_row(self, rows: Sequence[Record], x_column: str, y_column: str) -> List[Record]:
        series: List[Record] = []
        for row in rows:
            x = row.get(x_column)
            y = self.normalizer.to_float(row.get(y_column))
            series.append({"name": x, "value": y, x_column: x, y_column: y})
        return series

    def _scatter(self, rows: Sequence[Record], x_column: str, y_column: str) -> List[Record]:
        series: List[Record] = []
        for row in rows:
            x = self.normalizer.parse_number(row.get(x_column))
            y = self.normalizer.parse_number(row.get(y_column))
            if x is None or y is None:
                continue
            series.append({"x": x, "y": y, x_column: x, y_column: y})
        return series

    @staticmethod
    def _reducer(aggregate: AggregateFunction) -> Callable[[List[float]], float]:
        if aggregate == AggregateFunction.SUM:
            return lambda values: sum(values)
        if aggregate == AggregateFunction.AVG:
            return lambda values: sum(values) / len(values)
        if aggregate == AggregateFunction.MIN:
            return lambda values: min(values)
        if aggregate == AggregateFunction.MAX:
            return lambda values: max(values)
        return lambda values: len(values)

    def resolve_chart_type(self, chart_type: Any) -> ChartType:
        try:
            return ChartType(str(getattr(chart_type, "value", chart_type)).lower())
        except ValueError:
            raise UnsupportedChartTypeError(str(chart_type), self.SUPPORTED_CHART_TYPES)

    def resolve_aggregate(self, aggregate_function: Any) -> AggregateFunction:
        raw = getattr(aggregate_function, "value", aggregate_function) or AggregateFunction.SUM.value
        try:
            return AggregateFunction(str(raw).lower())
        except ValueError:
            raise UnsupportedAggregateFunctionError(str(aggregate_function), self.SUPPORTED_AGGREGATES)

    # ---------------------------
    # Filtering
    # ---------------------------

    def filter_rows(self, rows: Sequence[Record], filters: Sequence[DataFilter]) -> List[Record]:
        """Rows satisfying every filter."""
        if not filters:
            return list(rows)
        predicates = [self._predicate(f) for f in filters]
        return [row for row in rows if all(p(row) for p in predicates)]

    def _predicate(self, data_filter: DataFilter) -> Callable[[Record], bool]:
        try:
            operator = FilterOperator(str(data_filter.operator).lower())
        except ValueError:
            raise InvalidFilterError(
                f"unknown operator {data_filter.operator!r}",
                details={"operator": data_filter.operator, "supported": self.SUPPORTED_OPERATORS},
            )

        column = data_filter.column

        if operator == FilterOperator.EQUALS:
            expected = "" if data_filter.value is None else str(data_filter.value)
            return lambda row: str(row.get(column, "")) == expected

        if operator == FilterOperator.CONTAINS:
            needle = "" if data_filter.value is None else str(data_filter.value).lower()
            return lambda row: needle in str(row.get(column, "")).lower()

        lower = self._filter_bound(data_filter.value, data_filter, "value")
        if operator == FilterOperator.GREATER:
            return lambda row: self._compare(row.get(column), lambda n: n > lower)
        if operator == FilterOperator.LESS:
            return lambda row: self._compare(row.get(column), lambda n: n < lower)

        if data_filter.value2 is None:
            raise InvalidFilterError("between requires value2", details={"column": column})
        upper = self._filter_bound(data_filter.value2, data_filter, "value2")
        return lambda row: self._compare(row.get(column), lambda n: lower <= n <= upper)

    def _filter_bound(self, value: Any, data_filter: DataFilter, field: str) -> float:
        number = self.normalizer.parse_number(value)
        if number is None:
            raise InvalidFilterError(
                f"{field} must be numeric for operator {data_filter.operator!r}",
                details={"column": data_filter.column, field: value},
            )
        return number

    def _compare(self, cell: Any, test: Callable[[float], bool]) -> bool:
        number = self.normalizer.parse_number(cell)
        return number is not None and test(number)
