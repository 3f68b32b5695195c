"""
Schema Validation Utilities

Validates raw question records before they reach the index.

Two levels, mirroring the loader's needs:
- Basic (default): hand-written field checks that raise a typed
  ValidationError subclass naming the offending field.
- Strict: additionally validates against ``question.schema.json`` with
  jsonschema.

Validation is pure: it reads one record plus a read-only view of the
ids already in the target corpus and never mutates either.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import AbstractSet, Any, Iterable, Mapping, Optional

import jsonschema

from ..models.questions import AnswerFormat, Difficulty, Option, Question


REQUIRED_FIELDS = (
    "id", "category", "question", "answer",
    "difficulty", "type", "tags", "timeEstimate",
)

_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class ValidationError(Exception):
    """Raised when a record fails validation."""

    def __init__(
        self,
        message: str,
        field: str = "",
        errors: list[str] | None = None,
        record_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.field = field
        self.errors = errors or []
        self.record_id = record_id


class MissingFieldError(ValidationError):
    """A required field is absent."""


class InvalidFieldError(ValidationError):
    """A field has the wrong type or an out-of-range value."""


class InvalidEnumError(ValidationError):
    """A field holds a value outside its enum."""

    def __init__(self, message: str, field: str, allowed: Iterable[str], **kwargs: Any):
        super().__init__(message, field, **kwargs)
        self.allowed = tuple(allowed)


class DuplicateIdError(ValidationError):
    """The record's id already exists in the target corpus."""


class MultipleChoiceInvariantError(ValidationError):
    """A multiple-choice question breaks the option invariants."""


# ─────────────────────────────────────────────────────────────────────────────
# Record validation
# ─────────────────────────────────────────────────────────────────────────────

def validate_question(
    data: Mapping[str, Any],
    existing_ids: AbstractSet[str] = frozenset(),
    *,
    strict: bool = False,
) -> Question:
    """
    Validate a raw question record and build the Question.

    Args:
        data: Raw record (camelCase keys, as authored)
        existing_ids: Ids already present in the target corpus
        strict: Also validate against the bundled JSON schema

    Returns:
        The validated Question

    Raises:
        MissingFieldError: Required field absent
        InvalidFieldError: Wrong type or value
        InvalidEnumError: difficulty / answerFormat outside the enum
        DuplicateIdError: id already in existing_ids
        MultipleChoiceInvariantError: option count, uniqueness or
            exactly-one-correct violated

    Example:
        >>> q = validate_question(record, existing_ids={"hooks-1"})
    """
    if not isinstance(data, Mapping):
        raise InvalidFieldError(
            f"Question record must be a mapping, got {type(data).__name__}",
            field="<record>",
        )

    missing = [f for f in REQUIRED_FIELDS if f not in data]
    if missing:
        raise MissingFieldError(
            f"Missing required fields: {missing}",
            field=missing[0],
            errors=[f"Missing field: {f}" for f in missing],
            record_id=data.get("id") if isinstance(data.get("id"), str) else None,
        )

    qid = data["id"]
    if not isinstance(qid, str) or not qid.strip():
        raise InvalidFieldError(f"Invalid id: {qid!r} (must be a non-empty string)", field="id")

    if qid in existing_ids:
        raise DuplicateIdError(f"Duplicate question id: {qid!r}", field="id", record_id=qid)

    for name in ("category", "type"):
        _require_text(data[name], name, qid, allow_empty=False)
    for name in ("question", "answer"):
        _require_text(data[name], name, qid, allow_empty=True)

    difficulty = _parse_enum(data["difficulty"], Difficulty, "difficulty", qid)

    time_estimate = data["timeEstimate"]
    if isinstance(time_estimate, bool) or not isinstance(time_estimate, int) or time_estimate <= 0:
        raise InvalidFieldError(
            f"Invalid timeEstimate: {time_estimate!r} (must be a positive integer)",
            field="timeEstimate",
            record_id=qid,
        )

    tags = _parse_tags(data["tags"], qid)

    answer_format = None
    if data.get("answerFormat") is not None:
        answer_format = _parse_enum(data["answerFormat"], AnswerFormat, "answerFormat", qid)

    raw_options = data.get("options")
    options = _parse_options(() if raw_options is None else raw_options, qid)
    if answer_format is AnswerFormat.MULTIPLE_CHOICE:
        _check_multiple_choice(options, qid)

    subcategory = data.get("subcategory")
    if subcategory is not None:
        _require_text(subcategory, "subcategory", qid, allow_empty=False)
    code_example = data.get("codeExample")
    if code_example is not None:
        _require_text(code_example, "codeExample", qid, allow_empty=True)
    follow_up = data.get("followUp")
    if follow_up is None:
        follow_up = ()
    if not isinstance(follow_up, (list, tuple)) or not all(isinstance(f, str) for f in follow_up):
        raise InvalidFieldError("followUp must be a list of strings", field="followUp", record_id=qid)

    if strict:
        _validate_schema(data, qid)

    return Question(
        id=qid,
        category=data["category"],
        question=data["question"],
        answer=data["answer"],
        difficulty=difficulty,
        type=data["type"],
        tags=tags,
        time_estimate=time_estimate,
        answer_format=answer_format,
        options=options,
        code_example=code_example,
        subcategory=subcategory,
        follow_up=tuple(follow_up),
    )


def _require_text(value: Any, field: str, qid: str, *, allow_empty: bool) -> None:
    if not isinstance(value, str):
        raise InvalidFieldError(
            f"{field} must be a string, got {type(value).__name__}",
            field=field,
            record_id=qid,
        )
    if not allow_empty and not value.strip():
        raise InvalidFieldError(f"{field} must be non-empty", field=field, record_id=qid)


def _parse_enum(value: Any, enum_cls: type, field: str, qid: str):
    allowed = [member.value for member in enum_cls]
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        raise InvalidEnumError(
            f"Invalid {field}: {value!r} (expected one of {allowed})",
            field=field,
            allowed=allowed,
            record_id=qid,
        ) from None


def _parse_tags(value: Any, qid: str) -> frozenset[str]:
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise InvalidFieldError("tags must be a list of strings", field="tags", record_id=qid)
    for tag in value:
        if not isinstance(tag, str) or not tag.strip():
            raise InvalidFieldError(
                f"Invalid tag: {tag!r} (must be a non-empty string)",
                field="tags",
                record_id=qid,
            )
    return frozenset(value)


def _parse_options(value: Any, qid: str) -> tuple[Option, ...]:
    if not isinstance(value, (list, tuple)):
        raise InvalidFieldError("options must be a list", field="options", record_id=qid)
    options = []
    for i, raw in enumerate(value):
        path = f"options[{i}]"
        if not isinstance(raw, Mapping):
            raise InvalidFieldError(f"{path} must be a mapping", field=path, record_id=qid)
        if "id" not in raw or "text" not in raw:
            raise MissingFieldError(f"{path} must have id and text", field=path, record_id=qid)
        if not isinstance(raw["id"], str) or not raw["id"]:
            raise InvalidFieldError(f"{path}.id must be a non-empty string", field=f"{path}.id", record_id=qid)
        if not isinstance(raw["text"], str):
            raise InvalidFieldError(f"{path}.text must be a string", field=f"{path}.text", record_id=qid)
        is_correct = raw.get("isCorrect", False)
        if not isinstance(is_correct, bool):
            raise InvalidFieldError(
                f"{path}.isCorrect must be a boolean",
                field=f"{path}.isCorrect",
                record_id=qid,
            )
        options.append(Option(id=raw["id"], text=raw["text"], is_correct=is_correct))
    return tuple(options)


def _check_multiple_choice(options: tuple[Option, ...], qid: str) -> None:
    if len(options) < 2:
        raise MultipleChoiceInvariantError(
            f"Multiple-choice question {qid!r} needs at least 2 options, found {len(options)}",
            field="options",
            record_id=qid,
        )
    ids = [o.id for o in options]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise MultipleChoiceInvariantError(
            f"Multiple-choice question {qid!r} has duplicate option ids: {duplicates}",
            field="options.id",
            record_id=qid,
        )
    correct = sum(1 for o in options if o.is_correct)
    if correct != 1:
        raise MultipleChoiceInvariantError(
            f"Multiple-choice question {qid!r} must have exactly one correct option, found {correct}",
            field="options.isCorrect",
            record_id=qid,
        )


def _validate_schema(data: Mapping[str, Any], qid: str) -> None:
    schema = _load_schema("question")
    try:
        jsonschema.validate(dict(data), schema)
    except jsonschema.ValidationError as e:
        raise InvalidFieldError(
            f"Schema validation failed: {e.message}",
            field=".".join(str(p) for p in e.absolute_path),
            errors=[e.message],
            record_id=qid,
        ) from e


# ─────────────────────────────────────────────────────────────────────────────
# Near-duplicate detection (warnings only)
# ─────────────────────────────────────────────────────────────────────────────

_NON_WORD = re.compile(r"[^a-z0-9]+")


def text_fingerprint(text: str) -> str:
    """Fold case, punctuation and whitespace so trivially-different texts match."""
    return _NON_WORD.sub(" ", text.lower()).strip()


@dataclass(frozen=True)
class DuplicateTextWarning:
    """Two ids share the same normalized question text."""

    question_id: str
    duplicate_of: str

    @property
    def message(self) -> str:
        return f"Question {self.question_id!r} repeats the text of {self.duplicate_of!r}"

    def __str__(self) -> str:
        return self.message


def find_near_duplicates(questions: Iterable[Question]) -> list[DuplicateTextWarning]:
    """
    Flag questions whose normalized text matches an earlier question.

    Intent behind repeated texts is unknown (variant or data-entry slip),
    so this only reports; nothing is rejected or merged.

    Args:
        questions: Questions in ingest order

    Returns:
        One warning per later occurrence, pointing at the first
    """
    first_seen: dict[str, str] = {}
    warnings: list[DuplicateTextWarning] = []
    for question in questions:
        fingerprint = text_fingerprint(question.question)
        if not fingerprint:
            continue
        original = first_seen.setdefault(fingerprint, question.id)
        if original != question.id:
            warnings.append(DuplicateTextWarning(question.id, original))
    return warnings
