"""
Search package for the catalog backend.

This package handles relevance-ranked product search:
- Match clauses (substring, full text, trigram and word similarity)
- Composite scoring with tunable weights
- Store primitives for PostgreSQL and SQLite

Import from the submodules directly; `sqlite_functions` is loaded while the
database engine is being built and must not pull in the ORM models.
"""
