"""
Column analysis, data quality and chart models.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ColumnType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


class ColumnPattern(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    CURRENCY = "currency"
    DATE = "date"
    CODE = "code"


class DataColumn(BaseModel):
    """Inferred metadata for one column"""

    name: str
    type: ColumnType = ColumnType.STRING
    sample_values: List[str] = Field(default_factory=list, max_length=5)
    unique_count: int = Field(default=0, ge=0)
    null_count: int = Field(default=0, ge=0)
    is_key: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    avg: Optional[float] = None
    pattern: Optional[ColumnPattern] = None

    model_config = ConfigDict(extra="ignore")


class DataQualityReport(BaseModel):
    completeness: float = Field(..., ge=0, le=100, description="% of non-empty cells")
    consistency: float = Field(..., ge=0, le=100, description="% of columns with <=20% nulls")
    suggestions: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class StructuralQuality(BaseModel):
    """Shape problems observed in the raw grid"""

    total_rows: int = 0
    total_columns: int = 0
    empty_rows: int = 0
    empty_columns: int = 0
    inconsistent_rows: int = 0
    suggestions: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class ChartType(str, Enum):
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    SCATTER = "scatter"
    AREA = "area"


class ChartSuggestion(BaseModel):
    type: ChartType
    title: str
    x_column: str
    y_column: Optional[str] = None
    description: str = ""
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasoning: str = ""

    model_config = ConfigDict(extra="ignore")


class AggregateFunction(str, Enum):
    SUM = "sum"
    AVG = "avg"
    COUNT = "count"
    MIN = "min"
    MAX = "max"


class FilterOperator(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    GREATER = "greater"
    LESS = "less"
    BETWEEN = "between"


class DataFilter(BaseModel):
    """Row predicate applied before building a chart series"""

    column: str
    operator: str = Field(..., description="equals | contains | greater | less | between")
    value: Any = None
    value2: Any = None

    model_config = ConfigDict(extra="ignore")


class DataAnalysis(BaseModel):
    """Result of analyze(file_id)"""

    file_id: str
    columns: List[DataColumn] = Field(default_factory=list)
    row_count: int = 0
    suggestions: List[ChartSuggestion] = Field(default_factory=list)
    quality_report: DataQualityReport
    insights: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")
