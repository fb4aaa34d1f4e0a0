from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from shared.config.settings import get_settings
from sheetlens import __version__
from sheetlens.main import app, health_check, root

SALES_CSV = "Region,Sales\n" + "\n".join(f"{'NSE'[i % 3]},{i + 1}" for i in range(10)) + "\n"


@pytest.mark.asyncio
async def test_root_and_health() -> None:
    info = await root()
    health = await health_check()

    assert info["service"] == "sheetlens"
    assert info["version"] == __version__
    assert health["status"] == "success"
    assert health["data"]["status"] == "healthy"


def test_end_to_end_flow() -> None:
    with TestClient(app) as client:
        processed = client.post(
            "/api/v1/files/process",
            json={"file_id": "sales", "filename": "sales.csv", "content": SALES_CSV, "mime_type": "text/csv"},
        )
        analysis = client.get("/api/v1/files/sales/analysis")
        chart = client.post(
            "/api/v1/files/sales/chart-data",
            json={"chart_type": "bar", "x_column": "Region", "y_column": "Sales", "aggregate_function": "sum"},
        )
        listing = client.get("/api/v1/files")

    assert processed.status_code == 200
    assert processed.json()["row_count"] == 10
    assert processed.json()["column_count"] == 2

    assert analysis.status_code == 200
    suggestions = analysis.json()["suggestions"]
    assert [s["type"] for s in suggestions] == ["bar", "pie"]
    assert suggestions[0]["title"] == "Sales by Region"

    assert chart.status_code == 200
    assert chart.json()["data"] == [
        {"name": "N", "value": 22.0, "Sales": 22.0},
        {"name": "S", "value": 15.0, "Sales": 15.0},
        {"name": "E", "value": 18.0, "Sales": 18.0},
    ]

    assert listing.json() == {"file_ids": ["sales"], "count": 1}


def test_multipart_upload() -> None:
    with TestClient(app) as client:
        response = client.post(
            "/api/v1/files/upload",
            data={"file_id": "up"},
            files={"file": ("up.csv", b"Nome,Valor\nAna,10\n", "text/csv")},
        )
        listing = client.get("/api/v1/files")

    assert response.status_code == 200
    assert response.json()["row_count"] == 1
    assert listing.json()["file_ids"] == ["up"]


def test_error_statuses() -> None:
    with TestClient(app) as client:
        missing = client.get("/api/v1/files/missing/analysis")
        empty = client.post("/api/v1/files/process", json={"file_id": "empty", "content": ""})
        invalid = client.post("/api/v1/files/process", json={"content": "a,b\n1,2\n"})
        client.post("/api/v1/files/process", json={"file_id": "sales", "content": SALES_CSV})
        bad_type = client.post("/api/v1/files/sales/chart-data", json={"chart_type": "heatmap", "x_column": "Region"})
        bad_column = client.post("/api/v1/files/sales/chart-data", json={"chart_type": "bar", "x_column": "Nope"})
        listing = client.get("/api/v1/files")

    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "FILE_NOT_FOUND"
    assert empty.status_code == 422
    assert empty.json()["detail"]["code"] == "INPUT_EMPTY"
    assert invalid.status_code == 422
    assert bad_type.status_code == 400
    assert bad_type.json()["detail"]["code"] == "UNSUPPORTED_CHART_TYPE"
    assert bad_column.status_code == 400
    assert bad_column.json()["detail"]["code"] == "COLUMN_NOT_FOUND"
    assert listing.json()["file_ids"] == ["sales"]


def test_lifespan_creates_a_fresh_store() -> None:
    with TestClient(app) as client:
        client.post("/api/v1/files/process", json={"file_id": "one", "content": SALES_CSV})
    with TestClient(app) as client:
        listing = client.get("/api/v1/files")

    assert listing.json()["count"] == 0


def test_app_follows_settings() -> None:
    settings = get_settings()
    with TestClient(app) as client:
        assert client.get("/health").json()["data"]["service"] == "sheetlens"
        processor_logger = logging.getLogger("sheetlens.services.data_processor")

        assert processor_logger.level == logging.getLevelName(settings.log_level.upper())

    assert app.debug is settings.debug
    assert [route.path for route in app.routes].count("/health") == 1
