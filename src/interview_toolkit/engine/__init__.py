"""
Module: engine

Purpose:
    Indexing and selection engine for interview question banks. Builds
    facet indexes over validated questions and serves constrained,
    reproducible selections to practice sessions.

Key Functions:
    - plan_selection(): Plan a selection from a candidate set
    - load_records() / ingest_records(): Read and validate corpora

Key Classes:
    - QueryEngine: Facade composing index, planner and sessions
    - EngineConfig: Engine configuration
    - FacetIndex: Immutable multi-facet inverted index
    - SessionTracker / SessionHistory: Session state and archive

Dependencies:
    - jsonschema: Strict record validation
    - portalocker: Locked session history file

Used By:
    - Applications embedding the question bank
"""

from .config import EngineConfig
from .controller import DeadlineExceededError, EngineStats, QueryEngine
from .index import FacetIndex
from .loading import IngestReport, LoaderError, ingest_records, load_records
from .selection import EmptyCandidateSetError, PlanResult, SelectionError, plan_selection
from .session import (
    SessionHistory,
    SessionState,
    SessionStateError,
    SessionSummary,
    SessionTracker,
    StepProgressionPolicy,
    UnknownSessionError,
)

__all__ = [
    # Config
    "EngineConfig",
    # Controller
    "QueryEngine",
    "EngineStats",
    "DeadlineExceededError",
    # Index
    "FacetIndex",
    # Loading
    "load_records",
    "ingest_records",
    "IngestReport",
    "LoaderError",
    # Selection
    "plan_selection",
    "PlanResult",
    "SelectionError",
    "EmptyCandidateSetError",
    # Sessions
    "SessionTracker",
    "SessionState",
    "SessionSummary",
    "SessionStateError",
    "UnknownSessionError",
    "SessionHistory",
    "StepProgressionPolicy",
]
