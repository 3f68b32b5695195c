"""
Loading Package

Reads question records from disk and ingests them into a Corpus.
"""

from .loader import (
    IngestReport,
    LoaderError,
    RejectedRecord,
    ingest_records,
    load_corpus,
    load_records,
)

__all__ = [
    "load_records",
    "load_corpus",
    "ingest_records",
    "IngestReport",
    "RejectedRecord",
    "LoaderError",
]
