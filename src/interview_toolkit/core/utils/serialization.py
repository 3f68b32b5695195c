"""
Serialization Utilities

to/from JSON helpers for question records.

Raw records keep the authored camelCase shape. Reading never
constructs Questions by itself: records are returned as dicts so the
loader can validate each one and collect failures instead of aborting
on the first bad line.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, AbstractSet, Iterable

from ..models.questions import Question
from ..schemas.validator import validate_question


# ─────────────────────────────────────────────────────────────────────────────
# Question Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_question(question: Question) -> dict[str, Any]:
    """
    Serialize a Question to a raw record.

    The output passes ``validate_question`` unchanged.
    """
    return question.to_dict()


def deserialize_question(
    data: dict[str, Any],
    *,
    validate: bool = True,
    existing_ids: AbstractSet[str] = frozenset(),
    strict: bool = False,
) -> Question:
    """
    Deserialize a Question from a raw record.

    Args:
        data: Raw record
        validate: Run full field validation first
        existing_ids: Ids the record must not collide with (validate only)
        strict: Also check the JSON schema (validate only)

    Returns:
        Question instance

    Raises:
        ValidationError: If validate=True and data is invalid
        KeyError / ValueError: If validate=False and data is malformed
    """
    if validate:
        return validate_question(data, existing_ids, strict=strict)
    return Question.from_dict(data)


# ─────────────────────────────────────────────────────────────────────────────
# File Utilities
# ─────────────────────────────────────────────────────────────────────────────

def read_records_jsonl(path: Path) -> list[Any]:
    """
    Read raw records from a JSONL file (blank lines skipped).

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: On a line that is not valid JSON (line number included)
    """
    if not path.exists():
        raise FileNotFoundError(f"Questions file not found: {path}")

    records = []
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise ValueError(f"Error parsing {path.name} line {line_no}: {e}") from e
    return records


def read_records_json(path: Path) -> list[Any]:
    """
    Read raw records from a JSON file.

    Accepts either a top-level array or an object with a ``questions``
    array.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: On invalid JSON or an unexpected top-level shape
    """
    if not path.exists():
        raise FileNotFoundError(f"Questions file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Error parsing {path.name}: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("questions"), list):
        return data["questions"]
    if isinstance(data, list):
        return data
    raise ValueError(f"{path.name} must contain a JSON array or a 'questions' array")


def save_questions_jsonl(questions: Iterable[Question], path: Path) -> None:
    """
    Save questions to a JSONL file, one record per line.

    Args:
        questions: Questions to save
        path: Output path
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        for question in questions:
            f.write(json.dumps(serialize_question(question), ensure_ascii=False))
            f.write("\n")
