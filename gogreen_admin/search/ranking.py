from dataclasses import dataclass

from sqlalchemy import case, func
from sqlalchemy.sql.elements import ColumnElement

from .clauses import lowered_name, weighted_document
from .primitives import SearchPrimitives


@dataclass(frozen=True)
class ScoringWeights:
    """
    Weights of the composite relevance score.

    Exact, prefix and substring name matches are flat bonuses. The remaining
    signals are multipliers on scores in [0, 1], kept below the exact-match
    bonus so typo tolerance never outranks a known product name.
    """
    exact_match: float = 100
    prefix_match: float = 50
    substring_match: float = 25
    fulltext_rank_multiplier: float = 10
    trigram_multiplier: float = 30
    word_similarity_multiplier: float = 20


DEFAULT_WEIGHTS = ScoringWeights()


def _bonus(condition: ColumnElement, points: float) -> ColumnElement:
    return case((condition, points), else_=0)


def exact_match_score(query: str, weights: ScoringWeights = DEFAULT_WEIGHTS) -> ColumnElement:
    return _bonus(lowered_name() == query.lower(), weights.exact_match)


def prefix_match_score(query: str, weights: ScoringWeights = DEFAULT_WEIGHTS) -> ColumnElement:
    return _bonus(lowered_name().startswith(query.lower(), autoescape=True), weights.prefix_match)


def substring_match_score(query: str, weights: ScoringWeights = DEFAULT_WEIGHTS) -> ColumnElement:
    return _bonus(lowered_name().contains(query.lower(), autoescape=True), weights.substring_match)


def fulltext_score(query: str, primitives: SearchPrimitives, weights: ScoringWeights = DEFAULT_WEIGHTS) -> ColumnElement:
    return primitives.rank(weighted_document(primitives), query) * weights.fulltext_rank_multiplier


def trigram_score(query: str, primitives: SearchPrimitives, weights: ScoringWeights = DEFAULT_WEIGHTS) -> ColumnElement:
    return primitives.similarity(lowered_name(), func.lower(query)) * weights.trigram_multiplier


def word_similarity_score(query: str, primitives: SearchPrimitives, weights: ScoringWeights = DEFAULT_WEIGHTS) -> ColumnElement:
    return primitives.word_similarity(func.lower(query), lowered_name()) * weights.word_similarity_multiplier


def composite_score(query: str, primitives: SearchPrimitives, weights: ScoringWeights = DEFAULT_WEIGHTS) -> ColumnElement:
    return (
        exact_match_score(query, weights)
        + prefix_match_score(query, weights)
        + substring_match_score(query, weights)
        + fulltext_score(query, primitives, weights)
        + trigram_score(query, primitives, weights)
        + word_similarity_score(query, primitives, weights)
    )
