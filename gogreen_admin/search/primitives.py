"""
Store primitives the relevance query is composed from.

PostgreSQL provides them natively (tsvector/tsquery and pg_trgm). SQLite
stores get the Python functions registered by `sqlite_functions`.
"""

from sqlalchemy import Float, cast, func, literal, literal_column
from sqlalchemy.dialects.postgresql import REGCONFIG, TSVECTOR
from sqlalchemy.sql.elements import ColumnElement


class SearchPrimitives:
    """Trigram similarity is spelled the same on every supported store."""

    dialect = "generic"

    def __init__(self, text_config: str = "english"):
        self.text_config = text_config

    def document(self, name, description, short_description) -> ColumnElement:
        raise NotImplementedError

    def matches(self, document, query: str) -> ColumnElement:
        raise NotImplementedError

    def rank(self, document, query: str) -> ColumnElement:
        raise NotImplementedError

    def similarity(self, left, right) -> ColumnElement:
        return func.similarity(left, right, type_=Float)

    def word_similarity(self, left, right) -> ColumnElement:
        return func.word_similarity(left, right, type_=Float)


class PostgresPrimitives(SearchPrimitives):
    dialect = "postgresql"

    def _config(self):
        return cast(literal(self.text_config), REGCONFIG)

    def _weighted(self, column, weight: str):
        vector = func.to_tsvector(self._config(), func.coalesce(column, ""), type_=TSVECTOR)
        return func.setweight(vector, literal_column(f"'{weight}'"), type_=TSVECTOR)

    def document(self, name, description, short_description):
        return (
            self._weighted(name, "A")
            .op("||")(self._weighted(description, "B"))
            .op("||")(self._weighted(short_description, "C"))
        )

    def _tsquery(self, query: str):
        return func.plainto_tsquery(self._config(), query)

    def matches(self, document, query):
        return document.op("@@", is_comparison=True)(self._tsquery(query))

    def rank(self, document, query):
        return func.ts_rank(document, self._tsquery(query), type_=Float)


class SQLitePrimitives(SearchPrimitives):
    dialect = "sqlite"

    def document(self, name, description, short_description):
        return func.ts_document(
            name, func.coalesce(description, ""), func.coalesce(short_description, "")
        )

    def matches(self, document, query):
        return func.ts_match(document, query) == 1

    def rank(self, document, query):
        return func.ts_rank(document, query, type_=Float)


def primitives_for(dialect_name: str, text_config: str = "english") -> SearchPrimitives:
    if dialect_name == "postgresql":
        return PostgresPrimitives(text_config)
    if dialect_name == "sqlite":
        return SQLitePrimitives(text_config)
    raise ValueError(f"No search primitives for the {dialect_name!r} dialect")
