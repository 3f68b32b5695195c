"""
Unit tests for record loading and ingest.
"""

import json
from pathlib import Path

import pytest

from interview_toolkit.core.schemas.validator import (
    DuplicateIdError,
    InvalidEnumError,
    MissingFieldError,
)
from interview_toolkit.engine.config import EngineConfig
from interview_toolkit.engine.loading import (
    LoaderError,
    ingest_records,
    load_corpus,
    load_records,
)


class TestLoadRecords:
    """Tests for load_records."""

    def test_load_when_json_array_then_records(self, tmp_path: Path, scenario_records):
        path = tmp_path / "questions.json"
        path.write_text(json.dumps(scenario_records), encoding="utf-8")
        assert [r["id"] for r in load_records(path)] == ["a", "b", "c"]

    def test_load_when_directory_then_files_read_in_name_order(self, tmp_path: Path, scenario_records):
        # Arrange
        (tmp_path / "2-more.jsonl").write_text(json.dumps(scenario_records[2]) + "\n", encoding="utf-8")
        (tmp_path / "1-first.json").write_text(json.dumps(scenario_records[:2]), encoding="utf-8")
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

        # Act
        records = load_records(tmp_path)

        # Assert
        assert [r["id"] for r in records] == ["a", "b", "c"]

    def test_load_when_path_missing_then_loader_error(self, tmp_path: Path):
        with pytest.raises(LoaderError, match="does not exist"):
            load_records(tmp_path / "missing.json")

    def test_load_when_malformed_json_then_loader_error(self, tmp_path: Path):
        path = tmp_path / "broken.json"
        path.write_text("[{", encoding="utf-8")
        with pytest.raises(LoaderError):
            load_records(path)

    def test_load_when_unsupported_suffix_then_loader_error(self, tmp_path: Path):
        path = tmp_path / "questions.yaml"
        path.write_text("- id: a", encoding="utf-8")
        with pytest.raises(LoaderError, match="Unsupported"):
            load_records(path)


class TestIngestRecords:
    """Tests for ingest_records."""

    def test_ingest_when_all_valid_then_corpus_in_input_order(self, scenario_records):
        report = ingest_records(scenario_records)
        assert [q.id for q in report.questions] == ["a", "b", "c"]
        assert report.ok
        assert report.warnings == ()

    def test_ingest_when_bad_records_then_collected_not_raised(self, scenario_records):
        # Arrange
        bad_enum = {**scenario_records[0], "id": "z", "difficulty": "guru"}
        missing = {k: v for k, v in scenario_records[1].items() if k != "answer"}
        records = [scenario_records[0], bad_enum, missing, scenario_records[2]]

        # Act
        report = ingest_records(records)

        # Assert
        assert [q.id for q in report.questions] == ["a", "c"]
        assert [(e.position, e.record_id) for e in report.errors] == [(1, "z"), (2, "b")]
        assert isinstance(report.errors[0].error, InvalidEnumError)
        assert isinstance(report.errors[1].error, MissingFieldError)

    def test_ingest_when_id_repeats_then_later_record_rejected(self, scenario_records):
        report = ingest_records([*scenario_records, {**scenario_records[0], "question": "Other?"}])
        assert len(report.corpus) == 3
        assert isinstance(report.errors[0].error, DuplicateIdError)
        assert report.errors[0].position == 3

    def test_ingest_when_id_in_existing_ids_then_rejected(self, scenario_records):
        report = ingest_records(scenario_records, existing_ids={"b"})
        assert report.corpus.ids == frozenset({"a", "c"})

    def test_ingest_when_text_repeats_then_warning_and_both_accepted(self, scenario_records):
        dup = {**scenario_records[0], "id": "a2", "question": "what is A"}
        report = ingest_records([*scenario_records, dup])
        assert "a2" in report.corpus
        assert [(w.question_id, w.duplicate_of) for w in report.warnings] == [("a2", "a")]

    def test_ingest_when_duplicate_warnings_disabled_then_none(self, scenario_records):
        dup = {**scenario_records[0], "id": "a2"}
        report = ingest_records([*scenario_records, dup], config=EngineConfig(warn_near_duplicates=False))
        assert report.warnings == ()

    def test_ingest_when_strict_then_schema_applied(self, scenario_records):
        extra = {**scenario_records[0], "id": "x1", "question": "Unique?", "rating": 4}
        assert ingest_records([extra]).ok
        assert not ingest_records([extra], config=EngineConfig(strict_validation=True)).ok

    def test_load_corpus_when_file_then_report(self, tmp_path: Path, scenario_records):
        path = tmp_path / "q.jsonl"
        path.write_text("\n".join(json.dumps(r) for r in scenario_records), encoding="utf-8")
        assert len(load_corpus(path).corpus) == 3
