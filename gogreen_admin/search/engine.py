"""
Relevance-ranked product search.
"""

from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, DisconnectionError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from ..exceptions import InvalidQuery, StoreUnavailable
from ..logging_config import log_search_request
from ..models import Product
from .clauses import DEFAULT_THRESHOLDS, MatchThresholds, search_predicate
from .primitives import SearchPrimitives, primitives_for
from .ranking import DEFAULT_WEIGHTS, ScoringWeights, composite_score


class ProductSearchEngine:
    """
    Composes the four match strategies and the composite score into a single
    SELECT against the product store.

    The engine is stateless: every call issues exactly one read query and
    holds no locks. It never retries. Connection-level failures surface as
    `StoreUnavailable` and any other store error propagates unchanged.
    """

    def __init__(
        self,
        db: Session,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        thresholds: MatchThresholds = DEFAULT_THRESHOLDS,
        text_config: str = "english",
        primitives: Optional[SearchPrimitives] = None,
    ):
        self.db = db
        self.weights = weights
        self.thresholds = thresholds
        self.primitives = primitives or primitives_for(db.get_bind().dialect.name, text_config)

    @staticmethod
    def validate_query(query) -> str:
        if not isinstance(query, str):
            raise InvalidQuery(f"expected text, got {type(query).__name__}")
        if not query.strip():
            raise InvalidQuery("query must not be empty")
        return query

    def build_statement(self, query: str, include_inactive: bool = False) -> Select:
        query = self.validate_query(query)
        score = composite_score(query, self.primitives, self.weights).label("relevance")
        return (
            select(Product, score)
            .where(search_predicate(query, include_inactive, self.primitives, self.thresholds))
            .order_by(score.desc())
        )

    def search_with_scores(self, query: str, include_inactive: bool = False) -> List[Tuple[Product, float]]:
        statement = self.build_statement(query, include_inactive)
        try:
            rows = self.db.execute(statement).all()
        except (OperationalError, DisconnectionError, PoolTimeoutError) as e:
            raise StoreUnavailable(str(getattr(e, "orig", None) or e)) from e
        except DBAPIError as e:
            if e.connection_invalidated:
                raise StoreUnavailable(str(e.orig)) from e
            raise
        return [(product, float(score or 0)) for product, score in rows]

    @log_search_request
    def search(self, query: str, include_inactive: bool = False) -> List[Product]:
        return [product for product, _ in self.search_with_scores(query, include_inactive)]
