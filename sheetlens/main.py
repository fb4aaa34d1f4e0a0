"""
🔥 THINK ULTRA! SheetLens Service
스프레드시트 구조 추출, 컬럼 분석 및 차트 추천 서비스

Port: 8004
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env file

from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI

from shared.config.settings import get_settings
from shared.models.responses import ApiResponse
from shared.services.file_store import FileStore
from shared.services.service_factory import SHEETLENS_SERVICE_INFO, create_fastapi_service, run_service
from shared.utils.app_logger import configure_logging, get_logger

from sheetlens import __version__
from sheetlens.routers.files_router import router as files_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 시작/종료 이벤트"""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("🚀 SheetLens Service 시작")

    app.state.file_store = FileStore.from_settings(settings.storage)
    cache = app.state.file_store.cache
    logger.info(f"File store ready (disk cache: {cache.cache_dir if cache else 'disabled'})")

    yield

    logger.info(f"🔄 SheetLens Service 종료 ({app.state.file_store.size()} files known)")


app = create_fastapi_service(
    service_info=SHEETLENS_SERVICE_INFO,
    lifespan=lifespan,
    include_logging_middleware=True,
)

app.include_router(files_router, prefix="/api/v1")


@app.get("/", tags=["Health"])
async def root() -> Dict[str, Any]:
    """루트 엔드포인트"""
    return {
        "service": "sheetlens",
        "version": __version__,
        "status": "running",
        "description": "스프레드시트 구조 추출, 컬럼 분석 및 차트 추천 서비스",
        "endpoints": {
            "health": "/health",
            "process": "/api/v1/files/process",
            "upload": "/api/v1/files/upload",
            "files": "/api/v1/files",
            "analysis": "/api/v1/files/{file_id}/analysis",
            "chart_data": "/api/v1/files/{file_id}/chart-data",
            "docs": "/docs",
        },
    }


@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    """서비스 상태 확인"""
    return ApiResponse.health_check(
        service_name="sheetlens", version=__version__, description="스프레드시트 분석 서비스"
    ).to_dict()


if __name__ == "__main__":
    run_service(app, SHEETLENS_SERVICE_INFO, "sheetlens.main:app", reload=get_settings().is_development)
