from __future__ import annotations

import pytest
from pydantic import ValidationError

from shared.models.analysis import ChartSuggestion, DataColumn, DataQualityReport
from shared.models.files import ChartDataRequest, FileMetadata, ProcessFileRequest, StoredFile
from shared.models.responses import ApiResponse
from shared.models.table import ExtractedTable


@pytest.mark.unit
class TestFileModels:
    def test_process_request_defaults(self) -> None:
        request = ProcessFileRequest(file_id="f1")

        assert request.content == ""
        assert request.content_encoding == "text"

    @pytest.mark.parametrize(
        "payload",
        [{"file_id": ""}, {"file_id": "f", "content_encoding": "gzip"}, {"file_id": "f", "size_bytes": -1}],
    )
    def test_process_request_validation(self, payload) -> None:
        with pytest.raises(ValidationError):
            ProcessFileRequest(**payload)

    def test_chart_request_defaults(self) -> None:
        request = ChartDataRequest(chart_type="bar", x_column="Region")

        assert request.aggregate_function == "sum"
        assert request.y_column is None
        assert request.filters == []

    def test_stored_file_json_round_trip(self) -> None:
        stored = StoredFile(
            metadata=FileMetadata(file_id="f1"),
            headers=["A"],
            columns=[DataColumn(name="A", unique_count=1)],
            rows=[{"A": "x"}],
        )

        restored = StoredFile.model_validate_json(stored.model_dump_json())

        assert restored == stored
        assert restored.metadata.uploaded_at.tzinfo is not None


@pytest.mark.unit
class TestAnalysisModels:
    def test_bounds(self) -> None:
        with pytest.raises(ValidationError):
            DataQualityReport(completeness=101, consistency=50)
        with pytest.raises(ValidationError):
            ChartSuggestion(type="bar", title="t", x_column="x", confidence=1.5)
        with pytest.raises(ValidationError):
            DataColumn(name="A", sample_values=["1", "2", "3", "4", "5", "6"])

    def test_extracted_table_records(self) -> None:
        table = ExtractedTable(headers=["A", "B"], rows=[["1", "2"]])

        assert table.column_count == 2
        assert table.records() == [{"A": "1", "B": "2"}]


@pytest.mark.unit
def test_api_response_envelopes() -> None:
    assert ApiResponse.error("bad", ["X"]).to_dict() == {"status": "error", "message": "bad", "errors": ["X"]}
