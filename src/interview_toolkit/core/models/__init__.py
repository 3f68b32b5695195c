"""
Core Models Package

Immutable data models shared by every engine component.

| Model | Role |
|-------|------|
| `Question` | Validated question record |
| `Corpus` | Ordered question collection passed to the index |
| `FacetConstraint` | One facet filter (values OR'd) |
| `SelectionRequest` / `QueryRequest` | Planner / engine input |
| `SelectionResult` | Engine output |
"""

from .questions import AnswerFormat, Difficulty, Option, Question
from .corpus import Corpus

__all__ = [
    "AnswerFormat",
    "Difficulty",
    "Option",
    "Question",
    "Corpus",
]
