"""
Python renditions of the PostgreSQL search primitives, for SQLite stores.

The ranking query is composed from `similarity`, `word_similarity` (pg_trgm)
and a weighted tsvector with `@@` / `ts_rank`. SQLite has none of these, so
they are registered here as SQL functions on each new connection:

- similarity(a, b) and word_similarity(a, b) follow pg_trgm's trigram rules
  (words padded with two leading blanks and one trailing blank).
- ts_document(name, description, short_description) returns a JSON list of
  [lexeme, weight] pairs, weights A/B/C.
- ts_match(document, query) is true when every query lexeme is present,
  like `@@ plainto_tsquery(...)`.
- ts_rank(document, query) follows the shape of PostgreSQL's ts_rank with the
  default {D: 0.1, C: 0.2, B: 0.4, A: 1.0} weights. It has no proximity term
  and no stemming beyond plural folding.
"""

import json
import re
from typing import Dict, List, Optional, Set, Tuple

WORD_RE = re.compile(r"[^\W_]+", re.UNICODE)

RANK_WEIGHTS = {"A": 1.0, "B": 0.4, "C": 0.2, "D": 0.1}

# sum(1 / n^2), the normaliser ts_rank divides by
_PI_SQUARED_OVER_SIX = 1.64493406685

ENGLISH_STOP_WORDS = frozenset("""
a about above after again against all am an and any are as at be because been
before being below between both but by can did do does doing down during each
few for from further had has have having he her here hers herself him himself
his how i if in into is it its itself just me more most my myself no nor not
now of off on once only or other our ours ourselves out over own same she
should so some such than that the their theirs them themselves then there
these they this those through to too under until up very was we were what
when where which while who whom why will with you your yours yourself
yourselves
""".split())


def _words(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return WORD_RE.findall(value.lower())


def _word_trigrams(word: str) -> List[str]:
    padded = f"  {word} "
    return [padded[i:i + 3] for i in range(len(padded) - 2)]


def trigrams(value: Optional[str]) -> Set[str]:
    """The pg_trgm trigram set of a string."""
    result: Set[str] = set()
    for word in _words(value):
        result.update(_word_trigrams(word))
    return result


def similarity(left: Optional[str], right: Optional[str]) -> float:
    a, b = trigrams(left), trigrams(right)
    union = len(a | b)
    if not union:
        return 0.0
    return len(a & b) / union


def word_similarity(needle: Optional[str], haystack: Optional[str]) -> float:
    """
    Greatest similarity between the trigrams of `needle` and any contiguous
    run of the ordered trigrams of `haystack`.
    """
    target = trigrams(needle)
    if not target:
        return 0.0

    ordered: List[str] = []
    for word in _words(haystack):
        ordered.extend(_word_trigrams(word))

    best = 0.0
    for start in range(len(ordered)):
        extent: Set[str] = set()
        for end in range(start, len(ordered)):
            extent.add(ordered[end])
            shared = len(target & extent)
            if shared:
                best = max(best, shared / len(target | extent))
        if best == 1.0:
            break
    return best


def lexemes(value: Optional[str]) -> List[str]:
    """Lowercased, stop-word free tokens with plural 's' folded."""
    tokens = []
    for word in _words(value):
        if word in ENGLISH_STOP_WORDS:
            continue
        if len(word) > 3 and word.endswith("s") and not word.endswith("ss"):
            word = word[:-1]
        tokens.append(word)
    return tokens


def ts_document(name: Optional[str], description: Optional[str], short_description: Optional[str]) -> str:
    pairs: List[Tuple[str, str]] = []
    for text, weight in ((name, "A"), (description, "B"), (short_description, "C")):
        pairs.extend((lexeme, weight) for lexeme in lexemes(text))
    return json.dumps(pairs)


def _load_document(document: Optional[str]) -> Dict[str, List[float]]:
    weights: Dict[str, List[float]] = {}
    for lexeme, weight in json.loads(document or "[]"):
        weights.setdefault(lexeme, []).append(RANK_WEIGHTS[weight])
    return weights


def ts_match(document: Optional[str], query: Optional[str]) -> int:
    terms = set(lexemes(query))
    if not terms:
        return 0
    present = _load_document(document)
    return int(all(term in present for term in terms))


def ts_rank(document: Optional[str], query: Optional[str]) -> float:
    terms = list(dict.fromkeys(lexemes(query)))
    if not terms:
        return 0.0
    present = _load_document(document)
    total = 0.0
    for term in terms:
        occurrences = sorted(present.get(term, []), reverse=True)
        total += sum(w / (n * n) for n, w in enumerate(occurrences, start=1)) / _PI_SQUARED_OVER_SIX
    return total / len(terms)


def register_search_functions(dbapi_connection) -> None:
    """Attach the search primitives to a raw sqlite3 connection."""
    dbapi_connection.create_function("similarity", 2, similarity, deterministic=True)
    dbapi_connection.create_function("word_similarity", 2, word_similarity, deterministic=True)
    dbapi_connection.create_function("ts_document", 3, ts_document, deterministic=True)
    dbapi_connection.create_function("ts_match", 2, ts_match, deterministic=True)
    dbapi_connection.create_function("ts_rank", 2, ts_rank, deterministic=True)
