"""
Utils Package

Serialization helpers for question records and locked JSON file access.
"""

from .serialization import (
    serialize_question,
    deserialize_question,
    read_records_json,
    read_records_jsonl,
    save_questions_jsonl,
)
from .file_locking import (
    locked_file,
    locked_read_json,
    locked_read_modify_write_json,
)

__all__ = [
    "serialize_question",
    "deserialize_question",
    "read_records_json",
    "read_records_jsonl",
    "save_questions_jsonl",
    "locked_file",
    "locked_read_json",
    "locked_read_modify_write_json",
]
