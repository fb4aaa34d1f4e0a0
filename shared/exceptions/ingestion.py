"""
파일 적재/분석 관련 예외 정의
"""

from typing import List, Optional

from .base import DomainException


class IngestionError(DomainException):
    """적재 파이프라인 기본 예외"""


class InputEmptyError(IngestionError):
    """파싱 후 데이터 행이 없을 때"""

    def __init__(self, file_id: str, filename: Optional[str] = None):
        super().__init__(
            message=f"No rows found in file: {filename or file_id}",
            code="INPUT_EMPTY",
            details={"file_id": file_id, "filename": filename}
        )


class StoredFileNotFoundError(IngestionError):
    """저장소에 파일 ID가 없을 때"""

    def __init__(self, file_id: str):
        super().__init__(
            message=f"File not found: {file_id}",
            code="FILE_NOT_FOUND",
            details={"file_id": file_id}
        )


class MalformedSpreadsheetError(IngestionError):
    """엑셀 바이너리 파싱 실패"""

    def __init__(self, message: str, filename: Optional[str] = None):
        super().__init__(
            message=f"Malformed spreadsheet: {message}",
            code="MALFORMED_SPREADSHEET",
            details={"filename": filename} if filename else {}
        )


class UnsupportedChartTypeError(IngestionError):
    """지원하지 않는 차트 타입"""

    def __init__(self, chart_type: str, supported: List[str]):
        super().__init__(
            message=f"Unsupported chart type: {chart_type}",
            code="UNSUPPORTED_CHART_TYPE",
            details={"chart_type": chart_type, "supported": supported}
        )


class UnsupportedAggregateFunctionError(IngestionError):
    """지원하지 않는 집계 함수"""

    def __init__(self, function: str, supported: List[str]):
        super().__init__(
            message=f"Unsupported aggregate function: {function}",
            code="UNSUPPORTED_AGGREGATE",
            details={"aggregate_function": function, "supported": supported}
        )


class ColumnNotFoundError(IngestionError):
    """요청한 컬럼이 헤더에 없을 때"""

    def __init__(self, column: str, available: List[str]):
        super().__init__(
            message=f"Column not found: {column}",
            code="COLUMN_NOT_FOUND",
            details={"column": column, "available": available}
        )


class InvalidFilterError(IngestionError):
    """필터 정의 오류"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(
            message=f"Invalid filter: {message}",
            code="INVALID_FILTER",
            details=details or {}
        )
