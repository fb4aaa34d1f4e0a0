"""
도메인 예외 정의
도메인별로 구체적인 예외를 정의하여 명확한 에러 처리
"""

from .base import DomainException
from .ingestion import (
    ColumnNotFoundError,
    IngestionError,
    InputEmptyError,
    InvalidFilterError,
    MalformedSpreadsheetError,
    StoredFileNotFoundError,
    UnsupportedAggregateFunctionError,
    UnsupportedChartTypeError,
)

__all__ = [
    "DomainException",
    "IngestionError",
    "InputEmptyError",
    "StoredFileNotFoundError",
    "MalformedSpreadsheetError",
    "UnsupportedChartTypeError",
    "UnsupportedAggregateFunctionError",
    "ColumnNotFoundError",
    "InvalidFilterError",
]
