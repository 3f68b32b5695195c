"""
Tests for locked JSON file helpers.
"""

import json
import pytest
from pathlib import Path

from interview_toolkit.core.utils.file_locking import (
    locked_file,
    locked_read_json,
    locked_read_modify_write_json,
)


class TestLockedReadModifyWrite:
    """Tests for locked_read_modify_write_json."""

    def test_when_file_missing_then_created_from_default(self, tmp_path: Path):
        # Arrange
        path = tmp_path / "nested" / "state.json"

        # Act
        result = locked_read_modify_write_json(
            path, lambda d: {**d, "count": d["count"] + 1}, default=lambda: {"count": 0}
        )

        # Assert
        assert result == {"count": 1}
        assert json.loads(path.read_text(encoding="utf-8")) == {"count": 1}

    def test_when_called_twice_then_modifications_accumulate(self, tmp_path: Path):
        path = tmp_path / "state.json"
        for _ in range(2):
            locked_read_modify_write_json(path, lambda d: {"items": d.get("items", []) + ["x"]})
        assert locked_read_json(path) == {"items": ["x", "x"]}


class TestLockedRead:
    """Tests for locked_read_json and locked_file."""

    def test_read_when_missing_then_default(self, tmp_path: Path):
        assert locked_read_json(tmp_path / "nope.json", default=lambda: {"sessions": []}) == {"sessions": []}

    def test_read_when_invalid_json_then_raises_value_error(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{oops", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON"):
            locked_read_json(path)

    def test_locked_file_when_writing_then_content_persisted(self, tmp_path: Path):
        path = tmp_path / "out.txt"
        with locked_file(path, "w") as f:
            f.write("data")
        assert path.read_text(encoding="utf-8") == "data"
