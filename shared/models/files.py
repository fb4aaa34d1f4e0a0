"""
File ingress, storage and API payload models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.models.analysis import DataColumn, DataFilter, DataQualityReport, StructuralQuality
from shared.models.table import TableClassification, TableSection


class ProcessFileRequest(BaseModel):
    """Uploaded file handed over by the ingress layer"""

    file_id: str = Field(..., min_length=1, description="Caller supplied opaque identifier")
    filename: str = Field(default="", description="Original file name")
    content: str = Field(default="", description="Text, binary-as-text or base64 content")
    mime_type: str = Field(default="", description="MIME type reported by the uploader")
    size_bytes: int = Field(default=0, ge=0)
    content_encoding: Literal["text", "base64"] = Field(
        default="text", description="How `content` encodes the original bytes"
    )

    model_config = ConfigDict(extra="ignore")


class SectionSummary(BaseModel):
    name: str
    headers: List[str] = Field(default_factory=list)
    row_count: int = 0


class StructuralMetadata(BaseModel):
    """What the extractor decided about the file layout"""

    classification: TableClassification
    source: str = "unknown"
    sheet_name: Optional[str] = None
    sheet_names: List[str] = Field(default_factory=list)
    header_row_index: Optional[int] = None
    data_start_index: int = 0
    headers: List[str] = Field(default_factory=list)
    sections: List[SectionSummary] = Field(default_factory=list)
    structure: StructuralQuality = Field(default_factory=StructuralQuality)
    warnings: List[str] = Field(default_factory=list)


class ProcessFileResponse(BaseModel):
    file_id: str
    column_count: int
    row_count: int
    quality_report: DataQualityReport
    structural_metadata: StructuralMetadata


class FileMetadata(BaseModel):
    file_id: str
    original_name: str = ""
    mime_type: str = ""
    size_bytes: int = 0
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: Literal["processed", "error"] = "processed"
    classification: TableClassification = TableClassification.SIMPLE_TABLE
    data_start_index: int = 0
    sheet_names: List[str] = Field(default_factory=list)
    sections: List[TableSection] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class StoredFile(BaseModel):
    """Canonical processed copy of a file, kept per file id"""

    metadata: FileMetadata
    headers: List[str] = Field(default_factory=list)
    columns: List[DataColumn] = Field(default_factory=list)
    rows: List[Dict[str, str]] = Field(default_factory=list)
    processing_log: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class ChartDataRequest(BaseModel):
    chart_type: str = Field(..., description="bar | line | pie | scatter | area")
    x_column: str = Field(..., min_length=1)
    y_column: Optional[str] = None
    aggregate_function: str = Field(default="sum", description="sum | avg | count | min | max")
    filters: List[DataFilter] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class ChartDataResponse(BaseModel):
    file_id: str
    chart_type: str
    x_column: str
    y_column: Optional[str] = None
    aggregate_function: str = "sum"
    data: List[Dict[str, Any]] = Field(default_factory=list)
    total_points: int = 0
    truncated: bool = False


class FileListResponse(BaseModel):
    file_ids: List[str] = Field(default_factory=list)
    count: int = 0
