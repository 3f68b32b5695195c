"""
Interview Toolkit Core Package

Shared data models, schema validation and serialization. Everything in
``core`` is free of engine state: models are frozen dataclasses and the
validator is a pure function over one record.
"""

from .models import Corpus, Difficulty, AnswerFormat, Option, Question
from .models.facets import FacetKind, FacetConstraint
from .models.selection import QueryRequest, SelectionRequest, SelectionResult, SelectionStatus

__all__ = [
    "Corpus",
    "Difficulty",
    "AnswerFormat",
    "Option",
    "Question",
    "FacetKind",
    "FacetConstraint",
    "QueryRequest",
    "SelectionRequest",
    "SelectionResult",
    "SelectionStatus",
]
