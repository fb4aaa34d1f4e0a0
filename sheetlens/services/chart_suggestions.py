"""
🔥 THINK ULTRA! Chart Suggestion Engine
Enumerates chart configurations from inferred column metadata and ranks them
by fixed per-rule confidence.
"""

from typing import Any, List, Sequence, Union

from shared.models.analysis import ChartSuggestion, ChartType, ColumnType, DataColumn


class ChartSuggestionEngine:
    """Greedy enumerate-and-rank chart recommender"""

    BAR_CONFIDENCE = 0.8
    PIE_CONFIDENCE = 0.7
    LINE_CONFIDENCE = 0.9
    SCATTER_CONFIDENCE = 0.6
    AREA_CONFIDENCE = 0.8

    CATEGORICAL_RATIO = 0.5
    BAR_MAX_CATEGORIES = 20
    PIE_MIN_CATEGORIES = 2
    PIE_MAX_CATEGORIES = 10

    def __init__(self, max_suggestions: int = 6):
        self.max_suggestions = max_suggestions

    def suggest(
        self, columns: Sequence[DataColumn], rows: Union[Sequence[Any], int]
    ) -> List[ChartSuggestion]:
        """
        Chart suggestions for a table, best first.

        Args:
            columns: enriched column metadata
            rows: the table rows (only their count is used) or the row count

        Returns:
            At most `max_suggestions` suggestions sorted by descending confidence;
            equal confidences keep generation order
        """
        row_count = rows if isinstance(rows, int) else len(rows)

        numeric = [c for c in columns if c.type == ColumnType.NUMBER]
        categorical = [
            c for c in columns
            if c.type == ColumnType.STRING and c.unique_count < row_count * self.CATEGORICAL_RATIO
        ]
        dates = [c for c in columns if c.type == ColumnType.DATE]

        suggestions: List[ChartSuggestion] = []

        for cat in categorical:
            for num in numeric:
                if cat.unique_count <= self.BAR_MAX_CATEGORIES:
                    suggestions.append(
                        ChartSuggestion(
                            type=ChartType.BAR,
                            title=f"{num.name} by {cat.name}",
                            x_column=cat.name,
                            y_column=num.name,
                            description=f"Compare {num.name} across different {cat.name} categories",
                            confidence=self.BAR_CONFIDENCE,
                            reasoning=(
                                f"{cat.name} has {cat.unique_count} distinct categories, "
                                f"suitable for comparison with {num.name}"
                            ),
                        )
                    )

        for cat in categorical:
            if self.PIE_MIN_CATEGORIES <= cat.unique_count <= self.PIE_MAX_CATEGORIES:
                suggestions.append(
                    ChartSuggestion(
                        type=ChartType.PIE,
                        title=f"Distribution of {cat.name}",
                        x_column=cat.name,
                        description=f"Show the distribution of different {cat.name} values",
                        confidence=self.PIE_CONFIDENCE,
                        reasoning=f"{cat.name} has {cat.unique_count} categories, ideal for showing proportions",
                    )
                )

        for date_col in dates:
            for num in numeric:
                suggestions.append(
                    ChartSuggestion(
                        type=ChartType.LINE,
                        title=f"{num.name} over time",
                        x_column=date_col.name,
                        y_column=num.name,
                        description=f"Track how {num.name} changes over time",
                        confidence=self.LINE_CONFIDENCE,
                        reasoning=f"Time series data with {date_col.name} and numeric {num.name}",
                    )
                )

        for i, first in enumerate(numeric):
            for second in numeric[i + 1:]:
                suggestions.append(
                    ChartSuggestion(
                        type=ChartType.SCATTER,
                        title=f"{first.name} vs {second.name}",
                        x_column=first.name,
                        y_column=second.name,
                        description=f"Explore the relationship between {first.name} and {second.name}",
                        confidence=self.SCATTER_CONFIDENCE,
                        reasoning=(
                            f"Both {first.name} and {second.name} are numeric, "
                            f"suitable for correlation analysis"
                        ),
                    )
                )

        if dates and numeric:
            suggestions.append(
                ChartSuggestion(
                    type=ChartType.AREA,
                    title="Trends over time",
                    x_column=dates[0].name,
                    y_column=numeric[0].name,
                    description="Show trends and patterns over time with filled areas",
                    confidence=self.AREA_CONFIDENCE,
                    reasoning="Area charts work well for showing cumulative trends over time",
                )
            )

        # sorted() is stable, so ties keep generation order
        ranked = sorted(suggestions, key=lambda s: s.confidence, reverse=True)
        return ranked[: self.max_suggestions]
