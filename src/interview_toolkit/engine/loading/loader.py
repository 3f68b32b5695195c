"""
Module: engine.loading.loader

Purpose:
    Read raw question records from disk and ingest them into a validated
    Corpus. Invalid records are collected into an IngestReport instead
    of aborting the load, so one bad record never hides the rest.

Key Functions:
    - load_records(): Read raw records from a .json/.jsonl file or directory
    - ingest_records(): Validate records into a Corpus plus report
    - load_corpus(): load_records + ingest_records

Key Classes:
    - LoaderError: Unreadable corpus file or malformed JSON
    - IngestReport: Accepted corpus, rejected records, warnings

Dependencies:
    - interview_toolkit.core.schemas: find_near_duplicates
    - interview_toolkit.core.utils: deserialize_question, JSON / JSONL readers

Used By:
    - engine.controller.QueryEngine.from_records
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import AbstractSet, Any, Iterable, List, Optional, Tuple

from interview_toolkit.core.models import Corpus, Question
from interview_toolkit.core.schemas.validator import (
    DuplicateTextWarning,
    ValidationError,
    find_near_duplicates,
)
from interview_toolkit.core.utils.serialization import (
    deserialize_question,
    read_records_json,
    read_records_jsonl,
)

from ..config import EngineConfig

logger = logging.getLogger(__name__)

RECORD_SUFFIXES = (".json", ".jsonl")


class LoaderError(Exception):
    """Error reading question records from disk."""
    pass


@dataclass(frozen=True)
class RejectedRecord:
    """
    One record that failed validation.

    Attributes:
        position: Index of the record in the ingested sequence
        record_id: The record's id when it had a usable one
        error: The validation error raised for it
    """

    position: int
    record_id: Optional[str]
    error: ValidationError

    def __str__(self) -> str:
        label = self.record_id if self.record_id is not None else f"#{self.position}"
        return f"{label}: {self.error}"


@dataclass(frozen=True)
class IngestReport:
    """
    Outcome of ingesting a batch of records.

    Attributes:
        corpus: Accepted questions, in input order
        errors: Rejected records
        warnings: Near-duplicate question texts (records still accepted)
    """

    corpus: Corpus
    errors: Tuple[RejectedRecord, ...] = ()
    warnings: Tuple[DuplicateTextWarning, ...] = field(default_factory=tuple)

    @property
    def questions(self) -> Tuple[Question, ...]:
        return self.corpus.questions

    @property
    def ok(self) -> bool:
        return not self.errors

    def __repr__(self) -> str:
        return (
            f"IngestReport(accepted={len(self.corpus)}, "
            f"rejected={len(self.errors)}, warnings={len(self.warnings)})"
        )


# ─────────────────────────────────────────────────────────────────────────────
# Reading
# ─────────────────────────────────────────────────────────────────────────────

def load_records(path: Path) -> List[Any]:
    """
    Read raw records from disk.

    Args:
        path: A ``.json`` file (array, or object with a ``questions``
            array), a ``.jsonl`` file, or a directory whose ``.json`` /
            ``.jsonl`` files are read in name order

    Returns:
        Raw records in file order

    Raises:
        LoaderError: If the path doesn't exist, has an unsupported
            suffix, or holds malformed JSON

    Example:
        >>> records = load_records(Path("data/questions"))
        >>> len(records)
        120
    """
    path = Path(path)
    if not path.exists():
        raise LoaderError(f"Questions path does not exist: {path}")

    if path.is_dir():
        files = sorted(p for p in path.iterdir() if p.is_file() and p.suffix in RECORD_SUFFIXES)
        if not files:
            logger.warning(f"No question files found in {path}")
        records: List[Any] = []
        for file in files:
            records.extend(_read_file(file))
        logger.info(f"Read {len(records)} records from {len(files)} files in {path}")
        return records

    records = _read_file(path)
    logger.info(f"Read {len(records)} records from {path.name}")
    return records


def _read_file(path: Path) -> List[Any]:
    try:
        if path.suffix == ".jsonl":
            return read_records_jsonl(path)
        if path.suffix == ".json":
            return read_records_json(path)
    except (OSError, ValueError) as e:
        raise LoaderError(f"Failed to read {path}: {e}") from e
    raise LoaderError(f"Unsupported questions file type: {path.name}")


# ─────────────────────────────────────────────────────────────────────────────
# Ingest
# ─────────────────────────────────────────────────────────────────────────────

def ingest_records(
    records: Iterable[Any],
    *,
    existing_ids: AbstractSet[str] = frozenset(),
    config: Optional[EngineConfig] = None,
) -> IngestReport:
    """
    Validate raw records into a Corpus.

    Process:
    1. Validate each record against the ids accepted so far (plus
       ``existing_ids``), so a repeated id rejects the later record
    2. Collect rejections with their position and id
    3. Flag near-duplicate question texts as warnings

    Args:
        records: Raw record mappings
        existing_ids: Ids already present elsewhere (e.g. a live index)
        config: Engine configuration (strict validation, duplicate warnings)

    Returns:
        IngestReport
    """
    config = config or EngineConfig()
    accepted: List[Question] = []
    seen = set(existing_ids)
    errors: List[RejectedRecord] = []

    for position, record in enumerate(records):
        try:
            question = deserialize_question(
                record, existing_ids=seen, strict=config.strict_validation
            )
        except ValidationError as e:
            rejected = RejectedRecord(position, e.record_id or _record_id(record), e)
            errors.append(rejected)
            logger.warning(f"Rejected record {rejected}")
            continue
        seen.add(question.id)
        accepted.append(question)

    warnings: Tuple[DuplicateTextWarning, ...] = ()
    if config.warn_near_duplicates:
        warnings = tuple(find_near_duplicates(accepted))
        for warning in warnings:
            logger.warning(warning.message)

    report = IngestReport(Corpus.from_questions(accepted), tuple(errors), warnings)
    logger.info(f"Ingested {len(accepted)} questions ({len(errors)} rejected)")
    return report


def load_corpus(path: Path, *, config: Optional[EngineConfig] = None) -> IngestReport:
    """Read records from ``path`` and ingest them."""
    return ingest_records(load_records(path), config=config)


def _record_id(record: Any) -> Optional[str]:
    if isinstance(record, dict):
        qid = record.get("id")
        if isinstance(qid, str):
            return qid
    return None
