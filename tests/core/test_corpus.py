"""
Unit Tests for Corpus and Facet Models

Tests for the Corpus value and facet helpers.
"""

import pytest

from interview_toolkit.core.models import Corpus
from interview_toolkit.core.models.facets import (
    FacetConstraint,
    FacetKind,
    facet_values,
    iter_facets,
)
from interview_toolkit.core.models.questions import AnswerFormat, Difficulty


class TestCorpus:
    """Tests for Corpus dataclass."""

    def test_from_questions_when_unique_ids_then_indexed_by_id(self, scenario_questions):
        corpus = Corpus.from_questions(scenario_questions)
        assert len(corpus) == 3
        assert corpus.ids == frozenset({"a", "b", "c"})
        assert corpus.get("b").difficulty is Difficulty.SENIOR
        assert "c" in corpus
        assert [q.id for q in corpus] == ["a", "b", "c"]

    def test_init_when_duplicate_ids_then_raises(self, scenario_questions):
        with pytest.raises(ValueError, match="Duplicate"):
            Corpus.from_questions([*scenario_questions, scenario_questions[0]])

    def test_get_when_unknown_id_then_none(self, scenario_questions):
        assert Corpus.from_questions(scenario_questions).get("zzz") is None


class TestFacets:
    """Tests for facet extraction helpers."""

    def test_facet_values_when_optional_facets_unset_then_empty(self, scenario_questions):
        q = scenario_questions[0]
        assert facet_values(q, FacetKind.SUBCATEGORY) == ()
        assert facet_values(q, FacetKind.ANSWER_FORMAT) == ()

    def test_iter_facets_when_called_then_yields_every_indexed_pair(self, scenario_questions):
        pairs = set(iter_facets(scenario_questions[1]))
        assert pairs == {
            (FacetKind.CATEGORY, "X"),
            (FacetKind.DIFFICULTY, "senior"),
            (FacetKind.TYPE, "coding"),
            (FacetKind.TAG, "t2"),
        }

    def test_constraint_of_when_enum_values_then_coerced_to_strings(self):
        constraint = FacetConstraint.of(FacetKind.ANSWER_FORMAT, AnswerFormat.ESSAY)
        assert constraint.values == frozenset({"essay"})
        assert str(constraint) == "answer_format=essay"

    def test_constraint_when_no_values_then_raises(self):
        with pytest.raises(ValueError):
            FacetConstraint(FacetKind.TAG, frozenset())
