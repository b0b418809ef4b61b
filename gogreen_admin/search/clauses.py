"""
Match clauses of the product relevance search.

Each builder returns an independent SQLAlchemy boolean expression. The base
predicate ORs the four strategies. The active filter is ANDed on top of it
separately.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import and_, func, or_, true
from sqlalchemy.sql.elements import ColumnElement

from ..models import Product
from .primitives import SearchPrimitives


@dataclass(frozen=True)
class MatchThresholds:
    trigram: float = 0.2
    word_similarity: float = 0.3


DEFAULT_THRESHOLDS = MatchThresholds()


def lowered_name() -> ColumnElement:
    return func.lower(Product.name)


def weighted_document(primitives: SearchPrimitives) -> ColumnElement:
    """Name weighted highest, description second, short description third."""
    return primitives.document(Product.name, Product.description, Product.short_description)


def substring_clause(query: str) -> ColumnElement:
    needle = query.lower()
    return or_(
        lowered_name().contains(needle, autoescape=True),
        func.lower(func.coalesce(Product.description, "")).contains(needle, autoescape=True),
        func.lower(func.coalesce(Product.short_description, "")).contains(needle, autoescape=True),
    )


def fulltext_clause(query: str, primitives: SearchPrimitives) -> ColumnElement:
    return primitives.matches(weighted_document(primitives), query)


def trigram_clause(
    query: str, primitives: SearchPrimitives, thresholds: MatchThresholds = DEFAULT_THRESHOLDS
) -> ColumnElement:
    return primitives.similarity(lowered_name(), func.lower(query)) > thresholds.trigram


def word_similarity_clause(
    query: str, primitives: SearchPrimitives, thresholds: MatchThresholds = DEFAULT_THRESHOLDS
) -> ColumnElement:
    return primitives.word_similarity(func.lower(query), lowered_name()) > thresholds.word_similarity


def match_predicate(
    query: str, primitives: SearchPrimitives, thresholds: MatchThresholds = DEFAULT_THRESHOLDS
) -> ColumnElement:
    """A product matches when any one of the four strategies succeeds."""
    return or_(
        substring_clause(query),
        fulltext_clause(query, primitives),
        trigram_clause(query, primitives, thresholds),
        word_similarity_clause(query, primitives, thresholds),
    )


def active_filter(include_inactive: bool) -> Optional[ColumnElement]:
    if include_inactive:
        return None
    return Product.is_active.is_(True)


def search_predicate(
    query: str,
    include_inactive: bool,
    primitives: SearchPrimitives,
    thresholds: MatchThresholds = DEFAULT_THRESHOLDS,
) -> ColumnElement:
    visibility = active_filter(include_inactive)
    base = match_predicate(query, primitives, thresholds)
    return and_(visibility if visibility is not None else true(), base)
