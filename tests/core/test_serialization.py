"""
Unit Tests for Serialization Utilities

Tests for record (de)serialization and the JSON / JSONL readers.
"""

import json
import pytest
from pathlib import Path

from interview_toolkit.core.schemas.validator import DuplicateIdError, ValidationError
from interview_toolkit.core.utils.serialization import (
    deserialize_question,
    read_records_json,
    read_records_jsonl,
    save_questions_jsonl,
    serialize_question,
)


class TestQuestionSerialization:
    """Tests for question serialization/deserialization."""

    def test_serialize_when_question_given_then_passes_validation(self, scenario_questions):
        data = serialize_question(scenario_questions[0])
        assert data["timeEstimate"] == 3
        assert deserialize_question(data) == scenario_questions[0]

    def test_deserialize_when_invalid_data_then_raises(self, scenario_records):
        record = scenario_records[0]
        record["difficulty"] = "impossible"
        with pytest.raises(ValidationError):
            deserialize_question(record)

    def test_deserialize_when_id_taken_then_raises(self, scenario_records):
        with pytest.raises(DuplicateIdError):
            deserialize_question(scenario_records[0], existing_ids={"a"})

    def test_deserialize_when_strict_and_unknown_field_then_raises(self, scenario_records):
        record = {**scenario_records[0], "rating": 5}
        assert deserialize_question(record).id == "a"
        with pytest.raises(ValidationError, match="Schema validation failed"):
            deserialize_question(record, strict=True)

    def test_deserialize_when_validation_disabled_then_builds_directly(self, scenario_records):
        q = deserialize_question(scenario_records[1], validate=False)
        assert q.id == "b"


class TestRecordFiles:
    """Tests for file-level reading and writing."""

    def test_save_then_read_jsonl_when_questions_then_one_record_per_line(
        self, tmp_path: Path, scenario_questions
    ):
        # Arrange
        path = tmp_path / "out" / "questions.jsonl"

        # Act
        save_questions_jsonl(scenario_questions, path)
        records = read_records_jsonl(path)

        # Assert
        assert [r["id"] for r in records] == ["a", "b", "c"]
        assert len(path.read_text(encoding="utf-8").splitlines()) == 3

    def test_read_jsonl_when_blank_lines_then_skipped(self, tmp_path: Path, scenario_records):
        path = tmp_path / "q.jsonl"
        path.write_text("\n".join(["", json.dumps(scenario_records[0]), "  "]), encoding="utf-8")
        assert len(read_records_jsonl(path)) == 1

    def test_read_jsonl_when_bad_line_then_reports_line_number(self, tmp_path: Path):
        path = tmp_path / "q.jsonl"
        path.write_text('{"id": "a"}\n{broken\n', encoding="utf-8")
        with pytest.raises(ValueError, match="line 2"):
            read_records_jsonl(path)

    def test_read_json_when_wrapped_in_questions_key_then_unwrapped(self, tmp_path: Path, scenario_records):
        path = tmp_path / "q.json"
        path.write_text(json.dumps({"questions": scenario_records}), encoding="utf-8")
        assert [r["id"] for r in read_records_json(path)] == ["a", "b", "c"]

    def test_read_json_when_top_level_scalar_then_raises(self, tmp_path: Path):
        path = tmp_path / "q.json"
        path.write_text("42", encoding="utf-8")
        with pytest.raises(ValueError):
            read_records_json(path)

    def test_read_when_file_not_found_then_raises_error(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            read_records_json(tmp_path / "missing.json")
