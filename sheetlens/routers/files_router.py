"""
🔥 THINK ULTRA! SheetLens Files Router
파일 처리, 분석, 차트 데이터 API 엔드포인트
"""

import asyncio
from typing import NoReturn

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status

from shared.exceptions import (
    ColumnNotFoundError,
    DomainException,
    InputEmptyError,
    InvalidFilterError,
    MalformedSpreadsheetError,
    StoredFileNotFoundError,
    UnsupportedAggregateFunctionError,
    UnsupportedChartTypeError,
)
from shared.models.analysis import DataAnalysis
from shared.models.files import (
    ChartDataRequest,
    ChartDataResponse,
    FileListResponse,
    ProcessFileRequest,
    ProcessFileResponse,
)
from shared.services.file_store import FileStore
from shared.utils.app_logger import get_logger

from sheetlens.services.data_processor import SheetDataProcessor

logger = get_logger(__name__)

router = APIRouter(prefix="/files", tags=["Files"])

_STATUS_BY_ERROR = (
    (StoredFileNotFoundError, status.HTTP_404_NOT_FOUND),
    (InputEmptyError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (MalformedSpreadsheetError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (UnsupportedChartTypeError, status.HTTP_400_BAD_REQUEST),
    (UnsupportedAggregateFunctionError, status.HTTP_400_BAD_REQUEST),
    (ColumnNotFoundError, status.HTTP_400_BAD_REQUEST),
    (InvalidFilterError, status.HTTP_400_BAD_REQUEST),
)


def get_file_store(request: Request) -> FileStore:
    """애플리케이션 lifespan에서 생성된 파일 저장소"""
    return request.app.state.file_store


def get_data_processor(store: FileStore = Depends(get_file_store)) -> SheetDataProcessor:
    """데이터 프로세서 의존성"""
    return SheetDataProcessor(store)


def _raise_http(e: DomainException) -> NoReturn:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(e, error_type):
            raise HTTPException(status_code=status_code, detail=e.to_dict()) from e
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_dict()) from e


@router.post("/process", response_model=ProcessFileResponse)
async def process_file(
    request: ProcessFileRequest, processor: SheetDataProcessor = Depends(get_data_processor)
) -> ProcessFileResponse:
    """
    업로드된 파일 내용을 파싱하고 구조를 추출합니다.

    - CSV / Excel(바이너리 문자열 또는 base64) 지원
    - 헤더 탐지, 예산/지출 보고서 레이아웃 분류
    - 컬럼 타입 추론 및 데이터 품질 보고서
    """
    try:
        return await asyncio.to_thread(processor.process_file, request)
    except DomainException as e:
        logger.warning(f"File processing rejected for {request.file_id}: {e.code} {e.message}")
        _raise_http(e)
    except Exception as e:
        logger.error(f"File processing failed for {request.file_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"File processing failed: {str(e)}",
        )


@router.post("/upload", response_model=ProcessFileResponse)
async def upload_file(
    file_id: str = Form(...),
    file: UploadFile = File(...),
    processor: SheetDataProcessor = Depends(get_data_processor),
) -> ProcessFileResponse:
    """
    멀티파트 업로드 파일을 처리합니다 (file_id는 호출자가 지정).
    """
    try:
        raw = await file.read()
        return await asyncio.to_thread(
            processor.process_upload, file_id, file.filename or "", raw, file.content_type or ""
        )
    except DomainException as e:
        logger.warning(f"Upload rejected for {file_id}: {e.code} {e.message}")
        _raise_http(e)
    except Exception as e:
        logger.error(f"Upload processing failed for {file_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Upload processing failed: {str(e)}",
        )


@router.get("", response_model=FileListResponse)
async def list_files(processor: SheetDataProcessor = Depends(get_data_processor)) -> FileListResponse:
    """저장된 파일 ID 목록"""
    file_ids = processor.list_files()
    return FileListResponse(file_ids=file_ids, count=len(file_ids))


@router.get("/{file_id}/analysis", response_model=DataAnalysis)
async def analyze_file(
    file_id: str, processor: SheetDataProcessor = Depends(get_data_processor)
) -> DataAnalysis:
    """
    저장된 파일을 분석합니다.

    - 컬럼 메타데이터 (고유값, 빈값, 키 여부, 범위, 패턴)
    - 차트 추천 (최대 6개, 신뢰도 순)
    - 데이터 품질 보고서와 인사이트
    """
    try:
        return await asyncio.to_thread(processor.analyze, file_id)
    except DomainException as e:
        logger.warning(f"Analysis rejected for {file_id}: {e.code}")
        _raise_http(e)
    except Exception as e:
        logger.error(f"Analysis failed for {file_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Analysis failed: {str(e)}",
        )


@router.post("/{file_id}/chart-data", response_model=ChartDataResponse)
async def get_chart_data(
    file_id: str,
    request: ChartDataRequest,
    processor: SheetDataProcessor = Depends(get_data_processor),
) -> ChartDataResponse:
    """
    차트 렌더링용 시리즈 데이터를 생성합니다 (필터 -> 그룹/집계 -> 최대 포인트 제한).
    """
    try:
        return await asyncio.to_thread(processor.get_chart_data, file_id, request)
    except DomainException as e:
        logger.warning(f"Chart data rejected for {file_id}: {e.code} {e.message}")
        _raise_http(e)
    except Exception as e:
        logger.error(f"Chart data failed for {file_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Chart data failed: {str(e)}",
        )
