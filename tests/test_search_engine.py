import pytest
from unittest.mock import MagicMock
from sqlalchemy import select
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError, ProgrammingError

from gogreen_admin.exceptions import InvalidQuery, StoreUnavailable
from gogreen_admin.models import Product
from gogreen_admin.search.clauses import (
    fulltext_clause, search_predicate, substring_clause, trigram_clause, word_similarity_clause,
)
from gogreen_admin.search.engine import ProductSearchEngine
from gogreen_admin.search.primitives import PostgresPrimitives, SQLitePrimitives, primitives_for
from gogreen_admin.search.ranking import DEFAULT_WEIGHTS, exact_match_score, prefix_match_score

def names(products):
    return [p.name for p in products]

class TestSearchScenarios:
    """End-to-end searches against the SQLite store"""

    def test_solar_panel_ranks_name_match_first(self, db, test_products):
        results = ProductSearchEngine(db).search("solar panel")

        assert names(results)[0] == "Solar Panel 400W"
        assert "Hybrid Inverter" in names(results)
        assert "Wind Turbine" not in names(results)
        assert "Solar Panel Legacy" not in names(results)

    def test_misspelled_query_still_finds_product(self, db, test_products):
        results = ProductSearchEngine(db).search("slar pnel")

        assert names(results) == ["Solar Panel 400W"]

    def test_include_inactive(self, db, test_products):
        engine = ProductSearchEngine(db)
        active_only = names(engine.search("solar panel"))
        everything = names(engine.search("solar panel", include_inactive=True))

        assert set(active_only) <= set(everything)
        assert "Solar Panel Legacy" in everything

    def test_search_is_idempotent(self, db, test_products):
        engine = ProductSearchEngine(db)

        assert engine.search_with_scores("panel") == engine.search_with_scores("panel")

    def test_results_are_ordered_by_score(self, db, test_products):
        scores = [score for _, score in ProductSearchEngine(db).search_with_scores("solar panel")]

        assert scores == sorted(scores, reverse=True)

    def test_empty_store_returns_empty_result(self, db):
        assert ProductSearchEngine(db).search("solar panel") == []

    def test_no_match_returns_empty_result(self, db, test_products):
        assert ProductSearchEngine(db).search("qqqqxz") == []

    def test_percent_sign_matches_literally(self, db, product_factory):
        product_factory("100% Recycled Mat", "Garden Hose")

        assert names(ProductSearchEngine(db).search("%")) == ["100% Recycled Mat"]

    def test_underscore_matches_literally(self, db, product_factory):
        product_factory("Cable_Tie Pack", "Garden Hose")

        assert names(ProductSearchEngine(db).search("_")) == ["Cable_Tie Pack"]

class TestScoring:
    """Individual score components"""

    def test_exact_match_bonus(self, db, test_products):
        rows = dict(db.execute(select(Product.name, exact_match_score("SOLAR panel 400w"))).all())

        assert rows["Solar Panel 400W"] == DEFAULT_WEIGHTS.exact_match
        assert rows["Hybrid Inverter"] == 0

    def test_exact_match_outscores_near_match(self, db, product_factory):
        product_factory("Solar Lamp", "Solar Lamp Pro")

        scores = dict(
            (p.name, s) for p, s in ProductSearchEngine(db).search_with_scores("solar lamp")
        )

        assert scores["Solar Lamp"] - scores["Solar Lamp Pro"] >= DEFAULT_WEIGHTS.exact_match - 10

    def test_prefix_bonus_holds_for_every_prefix(self, db, test_products):
        name = "solar panel 400w"
        for end in range(1, len(name) + 1):
            rows = dict(db.execute(select(Product.name, prefix_match_score(name[:end]))).all())
            assert rows["Solar Panel 400W"] == DEFAULT_WEIGHTS.prefix_match

    def test_prefix_bonus_requires_leading_match(self, db, test_products):
        rows = dict(db.execute(select(Product.name, prefix_match_score("panel"))).all())

        assert rows["Solar Panel 400W"] == 0

class TestQueryValidation:
    """Invalid input and store failures"""

    @pytest.mark.parametrize("query", ["", "   ", "\t\n"])
    def test_blank_query_rejected(self, db, query):
        with pytest.raises(InvalidQuery) as exc_info:
            ProductSearchEngine(db).search(query)
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("query", [None, 42, b"solar"])
    def test_non_text_query_rejected(self, db, query):
        with pytest.raises(InvalidQuery):
            ProductSearchEngine(db).search(query)

    def test_disconnect_raises_store_unavailable(self):
        session = MagicMock()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("server closed the connection"))

        engine = ProductSearchEngine(session, primitives=SQLitePrimitives())
        with pytest.raises(StoreUnavailable) as exc_info:
            engine.search("solar")
        assert exc_info.value.status_code == 503

    def test_other_store_errors_propagate(self):
        session = MagicMock()
        session.execute.side_effect = ProgrammingError("SELECT", {}, Exception("syntax error"))

        engine = ProductSearchEngine(session, primitives=SQLitePrimitives())
        with pytest.raises(ProgrammingError):
            engine.search("solar")

class TestPostgresCompilation:
    """Each clause compiles on its own against the PostgreSQL dialect"""

    @pytest.fixture
    def primitives(self):
        return PostgresPrimitives("english")

    def compile(self, clause):
        return str(clause.compile(dialect=postgresql.dialect()))

    def test_substring_clause(self):
        sql = self.compile(substring_clause("Solar"))
        assert sql.count("LIKE") == 3
        assert "ESCAPE" in sql

    def test_fulltext_clause(self, primitives):
        sql = self.compile(fulltext_clause("solar", primitives))
        assert "@@ plainto_tsquery" in sql
        assert sql.count("setweight") == 3
        assert "REGCONFIG" in sql

    def test_trigram_clause(self, primitives):
        sql = self.compile(trigram_clause("solar", primitives))
        assert "similarity(lower(products.name)" in sql
        assert ">" in sql

    def test_word_similarity_clause(self, primitives):
        sql = self.compile(word_similarity_clause("solar", primitives))
        assert "word_similarity(lower(" in sql

    def test_active_filter_is_anded(self, primitives):
        sql = self.compile(search_predicate("solar", False, primitives))
        assert "products.is_active IS true" in sql
        assert sql.count(" OR ") >= 3

    def test_include_inactive_drops_filter(self, primitives):
        sql = self.compile(search_predicate("solar", True, primitives))
        assert "is_active" not in sql

    def test_unknown_dialect(self):
        with pytest.raises(ValueError):
            primitives_for("mysql")
