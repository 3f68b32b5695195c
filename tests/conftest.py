import pytest
import sys
from pathlib import Path

# Add src to sys.path so we can import interview_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from interview_toolkit.core.schemas.validator import validate_question  # noqa: E402
from interview_toolkit.engine.index import FacetIndex  # noqa: E402


# Common test fixtures
@pytest.fixture
def scenario_records() -> list[dict]:
    """Three-question corpus: two in category X, two tagged t1."""
    return [
        {
            "id": "a", "category": "X", "question": "What is a?", "answer": "a",
            "difficulty": "beginner", "type": "conceptual", "tags": ["t1"], "timeEstimate": 3,
        },
        {
            "id": "b", "category": "X", "question": "What is b?", "answer": "b",
            "difficulty": "senior", "type": "coding", "tags": ["t2"], "timeEstimate": 5,
        },
        {
            "id": "c", "category": "Y", "question": "What is c?", "answer": "c",
            "difficulty": "beginner", "type": "conceptual", "tags": ["t1"], "timeEstimate": 4,
        },
    ]


@pytest.fixture
def scenario_questions(scenario_records):
    """Validated questions for the scenario corpus."""
    return [validate_question(r) for r in scenario_records]


@pytest.fixture
def scenario_index(scenario_questions) -> FacetIndex:
    """FacetIndex over the scenario corpus."""
    return FacetIndex.build(scenario_questions)
