from __future__ import annotations

import base64
import io

import pytest
from openpyxl import Workbook

from shared.exceptions import (
    ColumnNotFoundError,
    InputEmptyError,
    MalformedSpreadsheetError,
    StoredFileNotFoundError,
    UnsupportedChartTypeError,
)
from shared.models.analysis import ChartType, ColumnType, DataFilter
from shared.models.files import ChartDataRequest, ProcessFileRequest
from shared.models.table import TableClassification
from shared.services.file_cache import FileCache
from shared.services.file_store import FileStore
from shared.services.sheet_grid_parser import EXCEL_FALLBACK_WARNING
from sheetlens.services.data_processor import SheetDataProcessor

EXPENSES_CSV = (
    "Data,Categoria,Valor\n"
    '2024-01-01,Alimentação,"R$ 10,50"\n'
    '2024-01-02,Transporte,"R$ 5,00"\n'
)

BUDGET_CSV = "\n".join(
    [
        "Categoria;Previsto;Real;Diferença",
        "Despesas",
        "Aluguel;R$ 1.500,00;R$ 1.500,00;R$ 0,00",
        "Mercado;R$ 800,00;R$ 950,00;R$ -150,00",
        "Total Despesas;R$ 2.300,00;R$ 2.450,00;R$ -150,00",
        "Renda",
        "Salário;R$ 5.000,00;R$ 5.000,00",
    ]
)


def _workbook_bytes() -> bytes:
    wb = Workbook()
    summary = wb.active
    summary.title = "Resumo"
    summary.append(["Notas"])

    data = wb.create_sheet("Dados")
    data.append(["Produto", "Quantidade", "Preço"])
    data.append(["Caneta", 10, 2.5])
    data.append(["Lápis", 5, 1.25])
    data["C2"].number_format = '"R$" #,##0.00'
    data["C3"].number_format = '"R$" #,##0.00'

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def _request(file_id: str, content: str, filename: str = "data.csv", **kwargs) -> ProcessFileRequest:
    return ProcessFileRequest(file_id=file_id, filename=filename, content=content, **kwargs)


@pytest.fixture
def processor() -> SheetDataProcessor:
    return SheetDataProcessor(FileStore())


class TestProcessFile:
    def test_csv_is_extracted_and_stored(self, processor: SheetDataProcessor) -> None:
        response = processor.process_file(_request("f1", EXPENSES_CSV, mime_type="text/csv"))

        assert response.file_id == "f1"
        assert response.row_count == 2
        assert response.column_count == 3
        meta = response.structural_metadata
        assert meta.classification == TableClassification.SIMPLE_TABLE
        assert meta.source == "csv"
        assert meta.headers == ["Data", "Categoria", "Valor"]
        assert meta.header_row_index == 0
        assert response.quality_report.completeness == 100.0

        stored = processor.store.get("f1")
        assert stored is not None
        assert stored.rows[0] == {"Data": "2024-01-01", "Categoria": "Alimentação", "Valor": "10.5"}
        assert stored.metadata.original_name == "data.csv"

    def test_budget_layout(self, processor: SheetDataProcessor) -> None:
        response = processor.process_file(_request("budget", BUDGET_CSV))

        meta = response.structural_metadata
        assert meta.classification == TableClassification.BUDGET_LAYOUT
        assert meta.headers == ["Categoria", "Previsto", "Real", "Diferença"]
        assert [(s.name, s.row_count) for s in meta.sections] == [("Despesas", 2), ("Renda", 1)]
        assert response.row_count == 3

    def test_base64_workbook_uses_busiest_sheet(self, processor: SheetDataProcessor) -> None:
        content = base64.b64encode(_workbook_bytes()).decode("ascii")

        response = processor.process_file(
            _request("xlsx", content, filename="vendas.xlsx", content_encoding="base64")
        )

        meta = response.structural_metadata
        assert meta.source == "excel"
        assert meta.sheet_name == "Dados"
        assert meta.sheet_names == ["Resumo", "Dados"]
        stored = processor.store.get("xlsx")
        assert [row["Preço"] for row in stored.rows] == ["2.5", "1.25"]
        assert [row["Quantidade"] for row in stored.rows] == ["10", "5"]

    def test_upload_bytes(self, processor: SheetDataProcessor) -> None:
        response = processor.process_upload("up", "vendas.xlsx", _workbook_bytes())

        assert response.row_count == 2
        assert processor.store.get("up").metadata.size_bytes > 0

    def test_excel_named_text_falls_back_to_csv(self, processor: SheetDataProcessor) -> None:
        response = processor.process_file(_request("fb", "Nome,Valor\nAna,10\n", filename="data.xlsx"))

        assert response.row_count == 1
        assert EXCEL_FALLBACK_WARNING in response.structural_metadata.warnings
        assert EXCEL_FALLBACK_WARNING in processor.store.get("fb").processing_log

    def test_one_column_csv_keeps_its_header(self, processor: SheetDataProcessor) -> None:
        response = processor.process_file(_request("names", "Nome\nAna\nBruno\nCarla\n"))

        meta = response.structural_metadata
        assert meta.classification == TableClassification.SIMPLE_TABLE
        assert meta.headers == ["Nome"]
        assert response.column_count == 1
        assert response.row_count == 3
        assert response.quality_report.completeness == 100.0
        assert [row["Nome"] for row in processor.store.get("names").rows] == ["Ana", "Bruno", "Carla"]

    @pytest.mark.parametrize("content", ["", "a,b\n", "\n\n"])
    def test_empty_input_is_rejected_and_not_stored(self, processor: SheetDataProcessor, content: str) -> None:
        with pytest.raises(InputEmptyError) as exc_info:
            processor.process_file(_request("empty", content))

        assert exc_info.value.code == "INPUT_EMPTY"
        assert not processor.store.has("empty")

    def test_bad_base64(self, processor: SheetDataProcessor) -> None:
        with pytest.raises(MalformedSpreadsheetError):
            processor.process_file(_request("b64", "abc", content_encoding="base64"))

    def test_reprocessing_replaces_the_entry(self, processor: SheetDataProcessor) -> None:
        processor.process_file(_request("f1", EXPENSES_CSV))
        processor.process_file(_request("f1", "Nome,Valor\nAna,10\n"))

        assert processor.store.get("f1").headers == ["Nome", "Valor"]
        assert processor.list_files() == ["f1"]


class TestAnalyze:
    def test_columns_and_suggestions(self, processor: SheetDataProcessor) -> None:
        processor.process_file(_request("f1", EXPENSES_CSV))

        analysis = processor.analyze("f1")

        assert analysis.row_count == 2
        assert [c.type for c in analysis.columns] == [ColumnType.DATE, ColumnType.STRING, ColumnType.NUMBER]
        assert [s.type for s in analysis.suggestions] == [ChartType.LINE, ChartType.AREA]
        assert analysis.suggestions[0].title == "Valor over time"

    def test_expense_report_insight(self, processor: SheetDataProcessor) -> None:
        content = "Relatório de Despesas\nData,Descrição,Valor\n05/01/2024,Táxi,35\n07/01/2024,Almoço,42\n"
        processor.process_file(_request("exp", content))

        analysis = processor.analyze("exp")

        assert analysis.insights[0] == "Relatório de despesas detectado com 2 transação(ões)"

    def test_thousand_rows_with_five_regions(self, processor: SheetDataProcessor) -> None:
        regions = ["North", "South", "East", "West", "Central"]
        lines = ["Region,Sales"] + [f"{regions[i % 5]},{i}" for i in range(1000)]
        processor.process_file(_request("big", "\n".join(lines)))

        analysis = processor.analyze("big")
        bars = [s for s in analysis.suggestions if s.type == ChartType.BAR]
        chart = processor.get_chart_data(
            "big", ChartDataRequest(chart_type="bar", x_column="Region", y_column="Sales")
        )

        assert analysis.row_count == 1000
        assert len(bars) == 1
        assert [p["name"] for p in chart.data] == regions
        assert chart.truncated is False

    def test_unknown_file(self, processor: SheetDataProcessor) -> None:
        with pytest.raises(StoredFileNotFoundError):
            processor.analyze("missing")

    def test_restored_from_disk_cache(self, tmp_path) -> None:
        cache = FileCache(str(tmp_path))
        SheetDataProcessor(FileStore(cache=cache)).process_file(_request("f1", EXPENSES_CSV))

        restarted = SheetDataProcessor(FileStore(cache=FileCache(str(tmp_path))))

        assert restarted.list_files() == ["f1"]
        assert restarted.analyze("f1").row_count == 2


class TestChartData:
    def test_line_series(self, processor: SheetDataProcessor) -> None:
        processor.process_file(_request("f1", EXPENSES_CSV))

        response = processor.get_chart_data(
            "f1", ChartDataRequest(chart_type="line", x_column="Data", y_column="Valor")
        )

        assert response.chart_type == "line"
        assert response.aggregate_function == "sum"
        assert response.data == [
            {"name": "2024-01-01", "value": 10.5, "Data": "2024-01-01", "Valor": 10.5},
            {"name": "2024-01-02", "value": 5.0, "Data": "2024-01-02", "Valor": 5.0},
        ]
        assert (response.total_points, response.truncated) == (2, False)

    def test_series_is_truncated(self, processor: SheetDataProcessor) -> None:
        lines = ["Dia,Valor"] + [f"{i},{i * 2}" for i in range(150)]
        processor.process_file(_request("long", "\n".join(lines)))

        response = processor.get_chart_data(
            "long", ChartDataRequest(chart_type="line", x_column="Dia", y_column="Valor")
        )

        assert len(response.data) == 100
        assert response.total_points == 150
        assert response.truncated is True

    def test_filters_apply_before_aggregation(self, processor: SheetDataProcessor) -> None:
        lines = ["Region,Sales", "N,10", "N,20", "S,5", "S,50"]
        processor.process_file(_request("f", "\n".join(lines)))

        response = processor.get_chart_data(
            "f",
            ChartDataRequest(
                chart_type="bar",
                x_column="Region",
                y_column="Sales",
                filters=[DataFilter(column="Sales", operator="greater", value=8)],
            ),
        )

        assert response.data == [
            {"name": "N", "value": 30.0, "Sales": 30.0},
            {"name": "S", "value": 50.0, "Sales": 50.0},
        ]

    def test_unknown_columns(self, processor: SheetDataProcessor) -> None:
        processor.process_file(_request("f1", EXPENSES_CSV))

        with pytest.raises(ColumnNotFoundError):
            processor.get_chart_data("f1", ChartDataRequest(chart_type="bar", x_column="Nope"))
        with pytest.raises(ColumnNotFoundError):
            processor.get_chart_data(
                "f1",
                ChartDataRequest(
                    chart_type="bar",
                    x_column="Categoria",
                    filters=[DataFilter(column="Missing", operator="equals", value="x")],
                ),
            )

    def test_chart_type_is_checked_before_columns(self, processor: SheetDataProcessor) -> None:
        processor.process_file(_request("f1", EXPENSES_CSV))

        with pytest.raises(UnsupportedChartTypeError):
            processor.get_chart_data("f1", ChartDataRequest(chart_type="heatmap", x_column="Nope"))

    def test_unknown_file(self, processor: SheetDataProcessor) -> None:
        with pytest.raises(StoredFileNotFoundError):
            processor.get_chart_data("missing", ChartDataRequest(chart_type="bar", x_column="a"))
