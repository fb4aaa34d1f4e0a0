"""
Table extraction models.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TableClassification(str, Enum):
    """Structural layouts the extractor recognises"""

    SIMPLE_TABLE = "simple_table"
    BUDGET_LAYOUT = "budget_layout"
    EXPENSE_REPORT = "expense_report"
    COMPLEX_MULTI_SECTION = "complex_multi_section"


class TableSection(BaseModel):
    """Named sub-table extracted next to the primary table"""

    name: str
    headers: List[str] = Field(default_factory=list)
    rows: List[List[str]] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class ExtractedTable(BaseModel):
    """Primary table recovered from a raw grid"""

    headers: List[str] = Field(default_factory=list)
    header_row_index: Optional[int] = Field(
        default=None, description="Row used as header (None when synthesised)"
    )
    data_start_index: int = Field(default=0, ge=0, description="First raw row after the header")
    rows: List[List[str]] = Field(default_factory=list, description="Rows aligned to headers")
    classification: TableClassification = TableClassification.SIMPLE_TABLE
    strategy: str = Field(default="empty", description="Detection step that produced the headers")
    sections: List[TableSection] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @property
    def column_count(self) -> int:
        return len(self.headers)

    def records(self) -> List[dict]:
        """Rows keyed by header name."""
        return [dict(zip(self.headers, row)) for row in self.rows]
