"""
Module: questions

Purpose:
    Provides the Question dataclass - the record every other component
    shares read-only. Holds the indexed facets (category, difficulty,
    type, tags, answer format) and the opaque payloads (question/answer
    text, code example, follow-ups) that the engine never inspects.

Key Classes:
    - Difficulty: Ordered difficulty tiers (beginner < ... < expert)
    - AnswerFormat: essay / multiple-choice
    - Option: One multiple-choice option
    - Question: Immutable question record

Key Functions:
    - Question.to_dict() / Question.from_dict(): camelCase record translation
    - Difficulty.next(): Next tier up, clamped at expert

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - core.schemas.validator
    - engine.index.facets.FacetIndex
    - engine.selection.planner
    - engine.session.tracker
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple


class Difficulty(str, Enum):
    """Difficulty tier. Declaration order is the progression order."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    SENIOR = "senior"
    EXPERT = "expert"

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        """Zero-based position in the progression order."""
        return _DIFFICULTY_ORDER.index(self)

    def next(self) -> Difficulty:
        """
        Return the next tier up.

        Returns:
            The following tier, or EXPERT if already at the top
        """
        return _DIFFICULTY_ORDER[min(self.rank + 1, len(_DIFFICULTY_ORDER) - 1)]

    @classmethod
    def ordered(cls) -> Tuple[Difficulty, ...]:
        """All tiers, easiest first."""
        return _DIFFICULTY_ORDER


_DIFFICULTY_ORDER: Tuple[Difficulty, ...] = tuple(Difficulty)


class AnswerFormat(str, Enum):
    """How a question expects to be answered."""
    ESSAY = "essay"
    MULTIPLE_CHOICE = "multiple-choice"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Option:
    """
    A single multiple-choice option.

    Attributes:
        id: Option identifier, unique within its question (e.g. "a")
        text: Option text shown to the candidate
        is_correct: Whether this is the correct option
    """

    id: str
    text: str
    is_correct: bool = False

    def to_dict(self) -> dict:
        return {"id": self.id, "text": self.text, "isCorrect": self.is_correct}

    @classmethod
    def from_dict(cls, data: dict) -> Option:
        return cls(
            id=data["id"],
            text=data.get("text", ""),
            is_correct=bool(data.get("isCorrect", False)),
        )


@dataclass(frozen=True)
class Question:
    """
    Complete question record (immutable).

    Attributes:
        id: Unique, stable identifier like "hooks-1"
        category: Category label like "Hooks" (open set)
        question: Question text (opaque)
        answer: Reference answer text (opaque)
        difficulty: Difficulty tier
        type: Question type like "conceptual" (open set)
        tags: Tag labels, order irrelevant
        time_estimate: Expected answer time in minutes
        answer_format: essay / multiple-choice, if declared
        options: Multiple-choice options (empty for essay questions)
        code_example: Optional code sample (opaque, not indexed)
        subcategory: Optional finer grouping inside the category
        follow_up: Follow-up prompts (opaque, not indexed)

    Invariants:
        - time_estimate > 0
        - multiple-choice questions carry >= 2 options with unique ids
          and exactly one correct option

    Example:
        >>> q = Question(
        ...     id="hooks-1",
        ...     category="Hooks",
        ...     question="Explain useState.",
        ...     answer="...",
        ...     difficulty=Difficulty.SENIOR,
        ...     type="conceptual",
        ...     tags=frozenset({"hooks", "state"}),
        ...     time_estimate=5,
        ... )
        >>> q.is_multiple_choice
        False
    """

    id: str
    category: str
    question: str
    answer: str
    difficulty: Difficulty
    type: str
    tags: frozenset[str]
    time_estimate: int
    answer_format: Optional[AnswerFormat] = None
    options: Tuple[Option, ...] = ()
    code_example: Optional[str] = None
    subcategory: Optional[str] = None
    follow_up: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate question on construction."""
        if not self.id:
            raise ValueError("id must be non-empty")
        if self.time_estimate <= 0:
            raise ValueError(f"time_estimate must be positive: {self.time_estimate}")
        if self.is_multiple_choice:
            if len(self.options) < 2:
                raise ValueError(f"multiple-choice question {self.id!r} needs >= 2 options")
            correct = sum(1 for o in self.options if o.is_correct)
            if correct != 1:
                raise ValueError(
                    f"multiple-choice question {self.id!r} must have exactly one "
                    f"correct option, found {correct}"
                )

    @property
    def is_multiple_choice(self) -> bool:
        return self.answer_format is AnswerFormat.MULTIPLE_CHOICE

    @property
    def correct_option(self) -> Optional[Option]:
        """The correct option for multiple-choice questions, else None."""
        for option in self.options:
            if option.is_correct:
                return option
        return None

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize to a raw record using the corpus' camelCase keys.

        Optional fields are omitted when unset. Tags are sorted so the
        output is stable.

        Returns:
            Dict representation
        """
        d: dict[str, Any] = {
            "id": self.id,
            "category": self.category,
            "question": self.question,
            "answer": self.answer,
            "difficulty": self.difficulty.value,
            "type": self.type,
            "tags": sorted(self.tags),
            "timeEstimate": self.time_estimate,
        }
        if self.answer_format is not None:
            d["answerFormat"] = self.answer_format.value
        if self.options:
            d["options"] = [o.to_dict() for o in self.options]
        if self.code_example is not None:
            d["codeExample"] = self.code_example
        if self.subcategory is not None:
            d["subcategory"] = self.subcategory
        if self.follow_up:
            d["followUp"] = list(self.follow_up)
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        """
        Deserialize from a raw record.

        Performs no field-level checking beyond the constructor
        invariants; untrusted input goes through
        ``core.schemas.validator.validate_question`` instead.

        Args:
            data: Raw record with camelCase keys

        Returns:
            Question instance
        """
        answer_format = data.get("answerFormat")
        return cls(
            id=data["id"],
            category=data["category"],
            question=data["question"],
            answer=data["answer"],
            difficulty=Difficulty(data["difficulty"]),
            type=data["type"],
            tags=frozenset(data.get("tags", ())),
            time_estimate=data["timeEstimate"],
            answer_format=AnswerFormat(answer_format) if answer_format else None,
            options=tuple(Option.from_dict(o) for o in data.get("options", ())),
            code_example=data.get("codeExample"),
            subcategory=data.get("subcategory"),
            follow_up=tuple(data.get("followUp", ())),
        )

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        return (
            f"Question({self.id!r}, category={self.category!r}, "
            f"difficulty={self.difficulty.value}, minutes={self.time_estimate})"
        )
