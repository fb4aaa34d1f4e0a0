"""
Sheet grid models.

A spreadsheet (Excel workbook or CSV text) is reduced to a rows-of-cells grid of
display strings before any structural analysis runs.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SheetGrid(BaseModel):
    """Raw table: ordered rows of raw cell strings (ragged rows allowed)."""

    source: Literal["excel", "csv", "unknown"] = "unknown"
    sheet_name: Optional[str] = None
    sheet_names: List[str] = Field(default_factory=list, description="All sheets in the workbook")

    grid: List[List[str]] = Field(default_factory=list, description="Rows of display strings")

    metadata: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")
