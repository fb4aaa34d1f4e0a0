"""
Service Factory Module

Common FastAPI service creation utilities: CORS, request logging, domain
error handling and uvicorn launch configuration.
"""

import time
from typing import Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config.settings import get_settings
from shared.exceptions import DomainException
from shared.models.responses import ApiResponse
from shared.utils.app_logger import get_logger

logger = get_logger(__name__)


class ServiceInfo:
    """Service configuration container"""

    def __init__(
        self,
        name: str,
        title: str,
        description: str,
        version: str = "1.0.0",
        port: int = 8000,
        host: str = "localhost",
        tags: Optional[List[Dict[str, str]]] = None
    ):
        self.name = name
        self.title = title
        self.description = description
        self.version = version
        self.port = port
        self.host = host
        self.tags = tags or []


def create_fastapi_service(
    service_info: ServiceInfo,
    lifespan: Callable,
    include_logging_middleware: bool = True,
) -> FastAPI:
    """
    Create the FastAPI application with the shared middleware and handlers.

    Args:
        service_info: Service configuration
        lifespan: Lifespan context manager owning the service's resources
        include_logging_middleware: Whether to include request logging middleware

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    app = FastAPI(
        title=service_info.title,
        description=service_info.description,
        version=service_info.version,
        lifespan=lifespan,
        debug=settings.debug,
        openapi_tags=[{"name": "Health", "description": "Health check and service status"}] + service_info.tags,
    )

    _configure_cors(app)
    _add_domain_exception_handler(app)

    if include_logging_middleware:
        _add_logging_middleware(app)

    logger.info(f"✅ {service_info.name} FastAPI 앱 생성 완료 (environment={settings.environment.value})")

    return app


def _configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware from service settings"""
    service_settings = get_settings().services
    if service_settings.cors_enabled:
        origins = service_settings.cors_origins_list
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials="*" not in origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info(f"🌐 CORS enabled with origins: {origins}")
    else:
        logger.info("🚫 CORS disabled")


def _add_domain_exception_handler(app: FastAPI) -> None:
    """Domain errors that escape a router become 400 responses"""

    @app.exception_handler(DomainException)
    async def handle_domain_exception(request: Request, exc: DomainException):
        logger.warning(f"Unhandled domain error on {request.url.path}: {exc.code} {exc.message}")
        body = ApiResponse.error(exc.message, errors=[exc.code]).to_dict()
        body["details"] = exc.details
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


def _add_logging_middleware(app: FastAPI) -> None:
    """Add request logging middleware"""
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.info(
            f'Request: {request.method} {request.url.path} - Response: {response.status_code} - Time: {process_time:.4f}s'
        )
        return response


def create_uvicorn_config(service_info: ServiceInfo, reload: bool = True) -> Dict[str, Any]:
    """
    Create standardized uvicorn configuration.

    Args:
        service_info: Service configuration
        reload: Enable auto-reload for development

    Returns:
        Uvicorn configuration dictionary
    """
    config = {
        "host": service_info.host,
        "port": service_info.port,
        "reload": reload,
        "log_config": _get_logging_config(service_info.name)
    }
    logger.info(f"🔓 HTTP enabled for {service_info.name} on port {service_info.port}")
    return config


def _get_logging_config(service_name: str) -> Dict[str, Any]:
    """Get standardized logging configuration for uvicorn"""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": "%(levelprefix)s %(asctime)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": '%(levelprefix)s %(asctime)s - %(client_addr)s - "%(request_line)s" %(status_code)s',
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
            },
            "access": {
                "formatter": "access",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"level": "INFO"},
            "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
            service_name.lower(): {"handlers": ["default"], "level": "INFO", "propagate": False},
        },
    }


def run_service(
    app: FastAPI,
    service_info: ServiceInfo,
    app_module_path: str,
    reload: bool = True
) -> None:
    """
    Run the service with standardized uvicorn configuration.

    Args:
        app: FastAPI application instance
        service_info: Service configuration
        app_module_path: Module path for uvicorn (e.g., "sheetlens.main:app")
        reload: Enable auto-reload for development
    """
    config = create_uvicorn_config(service_info, reload)
    uvicorn.run(app_module_path, **config)


SHEETLENS_SERVICE_INFO = ServiceInfo(
    name="SheetLens",
    title="SheetLens Service",
    description="스프레드시트 구조 추출, 컬럼 분석 및 차트 추천 서비스",
    version="0.1.0",
    port=get_settings().services.service_port,
    host=get_settings().services.service_host,
    tags=[
        {"name": "Files", "description": "File processing and storage"},
        {"name": "Analysis", "description": "Column analysis and chart suggestions"},
        {"name": "Charts", "description": "Chart-ready series"},
    ]
)
