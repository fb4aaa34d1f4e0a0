"""
🔥 THINK ULTRA! SheetLens Data Processor
Ingestion pipeline orchestrator: parse -> extract -> infer -> assess, then
analysis and chart series on top of the stored result.

Architecture Flow:
1. File ingress (JSON body or multipart upload) -> SheetGrid
2. TableExtractor -> headers/rows/classification
3. ColumnTypeInferencer + DataQualityAssessor -> StoredFile in FileStore
4. analyze / get_chart_data read the stored copy
"""

import base64
import binascii
from typing import List, Optional

from shared.config.settings import ApplicationSettings, get_settings
from shared.exceptions import (
    ColumnNotFoundError,
    InputEmptyError,
    MalformedSpreadsheetError,
    StoredFileNotFoundError,
)
from shared.models.analysis import DataAnalysis
from shared.models.files import (
    ChartDataRequest,
    ChartDataResponse,
    FileMetadata,
    ProcessFileRequest,
    ProcessFileResponse,
    SectionSummary,
    StoredFile,
    StructuralMetadata,
)
from shared.models.sheet_grid import SheetGrid
from shared.services.file_store import FileStore
from shared.services.sheet_grid_parser import SheetGridParseOptions, SheetGridParser
from shared.utils.app_logger import get_logger

from sheetlens.services.cell_normalizer import CellNormalizer
from sheetlens.services.chart_data import ChartDataBuilder
from sheetlens.services.chart_suggestions import ChartSuggestionEngine
from sheetlens.services.data_quality import DataQualityAssessor
from sheetlens.services.insights import InsightGenerator
from sheetlens.services.table_extractor import TableExtractor
from sheetlens.services.type_inference import ColumnTypeInferencer

logger = get_logger(__name__)


class SheetDataProcessor:
    """
    Request-scoped processing on top of a shared FileStore.

    Every method runs to completion synchronously; callers in async code
    should offload it with asyncio.to_thread.
    """

    def __init__(self, store: FileStore, settings: Optional[ApplicationSettings] = None):
        self.store = store
        self.settings = settings or get_settings()

        ingestion = self.settings.ingestion
        self.normalizer = CellNormalizer.from_settings(ingestion)
        self.extractor = TableExtractor(normalizer=self.normalizer, settings=ingestion)
        self.inferencer = ColumnTypeInferencer(
            normalizer=self.normalizer, sample_size=ingestion.type_inference_sample_size
        )
        self.suggestion_engine = ChartSuggestionEngine(max_suggestions=self.settings.charts.chart_max_suggestions)
        self.chart_builder = ChartDataBuilder(
            normalizer=self.normalizer, max_points=self.settings.charts.chart_max_points
        )
        self.parse_options = SheetGridParseOptions(csv_delimiter=ingestion.csv_delimiter)

    # ---------------------------
    # processFile
    # ---------------------------

    def process_file(self, request: ProcessFileRequest) -> ProcessFileResponse:
        """
        Parse, extract and analyse an uploaded file, then store it under its id.

        Raises:
            InputEmptyError: no data rows survive extraction (nothing is stored)
            MalformedSpreadsheetError: base64 content cannot be decoded
        """
        logger.info(
            f"📁 Processing file {request.file_id} ({request.filename!r}, {request.mime_type!r}, "
            f"{request.size_bytes} bytes)"
        )
        if request.content_encoding == "base64":
            grid = SheetGridParser.parse_upload(
                self._decode_base64(request),
                filename=request.filename,
                mime_type=request.mime_type,
                options=self.parse_options,
            )
        else:
            grid = SheetGridParser.parse_text_upload(
                request.content,
                filename=request.filename,
                mime_type=request.mime_type,
                options=self.parse_options,
            )
        return self._process_grid(request, grid)

    def process_upload(
        self, file_id: str, filename: str, raw: bytes, mime_type: str = ""
    ) -> ProcessFileResponse:
        """Same pipeline for raw multipart bytes."""
        request = ProcessFileRequest(
            file_id=file_id, filename=filename, mime_type=mime_type, size_bytes=len(raw)
        )
        logger.info(f"📁 Processing upload {file_id} ({filename!r}, {len(raw)} bytes)")
        grid = SheetGridParser.parse_upload(
            raw, filename=filename, mime_type=mime_type, options=self.parse_options
        )
        return self._process_grid(request, grid)

    def _process_grid(self, request: ProcessFileRequest, grid: SheetGrid) -> ProcessFileResponse:
        log: List[str] = [f"source={grid.source} sheet={grid.sheet_name} raw_rows={len(grid.grid)}"]
        log.extend(grid.warnings)

        table = self.extractor.extract(grid.grid)
        if not table.rows:
            logger.warning(f"No data rows in {request.file_id} (strategy={table.strategy})")
            raise InputEmptyError(request.file_id, request.filename or None)

        records = table.records()
        columns = self.inferencer.analyze_columns(table.headers, records)
        quality = DataQualityAssessor.assess(columns, records)
        structure = DataQualityAssessor.structural_quality(
            table.headers, grid.grid[table.data_start_index:]
        )
        log.append(
            f"classification={table.classification.value} strategy={table.strategy} "
            f"header_row={table.header_row_index} rows={len(table.rows)} columns={len(table.headers)}"
        )

        stored = StoredFile(
            metadata=FileMetadata(
                file_id=request.file_id,
                original_name=request.filename,
                mime_type=request.mime_type,
                size_bytes=request.size_bytes,
                classification=table.classification,
                data_start_index=table.data_start_index,
                sheet_names=grid.sheet_names,
                sections=table.sections,
            ),
            headers=table.headers,
            columns=columns,
            rows=records,
            processing_log=log,
        )
        self.store.put(request.file_id, stored)

        logger.info(
            f"🎉 Processed {request.file_id}: {len(table.rows)} rows x {len(table.headers)} columns "
            f"({table.classification.value})"
        )
        return ProcessFileResponse(
            file_id=request.file_id,
            column_count=len(table.headers),
            row_count=len(table.rows),
            quality_report=quality,
            structural_metadata=StructuralMetadata(
                classification=table.classification,
                source=grid.source,
                sheet_name=grid.sheet_name,
                sheet_names=grid.sheet_names,
                header_row_index=table.header_row_index,
                data_start_index=table.data_start_index,
                headers=table.headers,
                sections=[
                    SectionSummary(name=s.name, headers=s.headers, row_count=len(s.rows))
                    for s in table.sections
                ],
                structure=structure,
                warnings=grid.warnings,
            ),
        )

    @staticmethod
    def _decode_base64(request: ProcessFileRequest) -> bytes:
        try:
            return base64.b64decode(request.content, validate=False)
        except (binascii.Error, ValueError) as e:
            raise MalformedSpreadsheetError(f"content is not valid base64 ({e})", request.filename) from e

    # ---------------------------
    # analyze
    # ---------------------------

    def analyze(self, file_id: str) -> DataAnalysis:
        """Columns, suggestions, quality report and insights for a stored file."""
        stored = self._get_stored(file_id)
        rows = stored.rows
        columns = self.inferencer.analyze_columns(stored.headers, rows)
        suggestions = self.suggestion_engine.suggest(columns, rows)
        insights = InsightGenerator.generate(
            columns, rows, stored.metadata.classification, stored.metadata.sections
        )
        logger.info(f"💡 {file_id}: {len(suggestions)} chart suggestions, {len(insights)} insights")
        return DataAnalysis(
            file_id=file_id,
            columns=columns,
            row_count=len(rows),
            suggestions=suggestions,
            quality_report=DataQualityAssessor.assess(columns, rows),
            insights=insights,
        )

    # ---------------------------
    # getChartData
    # ---------------------------

    def get_chart_data(self, file_id: str, request: ChartDataRequest) -> ChartDataResponse:
        """
        Chart-ready series for a stored file.

        Raises:
            StoredFileNotFoundError, UnsupportedChartTypeError,
            UnsupportedAggregateFunctionError, ColumnNotFoundError, InvalidFilterError
        """
        stored = self._get_stored(file_id)
        chart_type = self.chart_builder.resolve_chart_type(request.chart_type)
        aggregate = self.chart_builder.resolve_aggregate(request.aggregate_function)

        referenced = [request.x_column] + ([request.y_column] if request.y_column else [])
        referenced += [f.column for f in request.filters]
        for column in referenced:
            if column not in stored.headers:
                raise ColumnNotFoundError(column, stored.headers)

        rows = self.chart_builder.filter_rows(stored.rows, request.filters)
        points = self.chart_builder.build_points(
            rows, chart_type, request.x_column, request.y_column, aggregate
        )
        data = points[: self.chart_builder.max_points]

        logger.info(f"📈 {file_id}: {chart_type.value} chart with {len(data)}/{len(points)} points")
        return ChartDataResponse(
            file_id=file_id,
            chart_type=chart_type.value,
            x_column=request.x_column,
            y_column=request.y_column,
            aggregate_function=aggregate.value,
            data=data,
            total_points=len(points),
            truncated=len(points) > len(data),
        )

    # ---------------------------
    # Store access
    # ---------------------------

    def list_files(self) -> List[str]:
        return self.store.list()

    def _get_stored(self, file_id: str) -> StoredFile:
        stored = self.store.get(file_id)
        if stored is None:
            logger.warning(f"File not found: {file_id} (known: {self.store.list()})")
            raise StoredFileNotFoundError(file_id)
        return stored
