import json

import pytest

from gogreen_admin.search.sqlite_functions import (
    lexemes, similarity, trigrams, ts_document, ts_match, ts_rank, word_similarity,
)

def test_trigrams_pad_each_word():
    assert trigrams("cat") == {"  c", " ca", "cat", "at "}

def test_trigrams_ignore_case_and_punctuation():
    assert trigrams("Cat!") == trigrams("cat")

def test_similarity_identical_strings():
    assert similarity("solar panel", "Solar Panel") == 1.0

def test_similarity_tolerates_typos():
    assert similarity("solar panel 400w", "slar pnel") == pytest.approx(6 / 21)

def test_similarity_of_empty_strings():
    assert similarity("", "") == 0.0
    assert similarity(None, "solar") == 0.0

def test_word_similarity_matches_best_extent():
    assert word_similarity("word", "two words") == pytest.approx(0.8)

def test_word_similarity_full_word():
    assert word_similarity("panel", "solar panel kit") == 1.0

def test_word_similarity_without_trigrams():
    assert word_similarity("%", "solar panel") == 0.0

def test_lexemes_drop_stop_words_and_fold_plurals():
    assert lexemes("The panels and the glass") == ["panel", "glass"]

def test_ts_document_weights():
    document = json.loads(ts_document("Solar Panel", "for rooftops", None))
    assert ["solar", "A"] in document
    assert ["rooftop", "B"] in document

def test_ts_match_requires_every_term():
    document = ts_document("Solar Panel", "Rooftop module", "")
    assert ts_match(document, "solar module") == 1
    assert ts_match(document, "solar battery") == 0

def test_ts_match_empty_query():
    assert ts_match(ts_document("Solar Panel", "", ""), "the") == 0

def test_ts_rank_prefers_name_over_description():
    in_name = ts_document("Solar Panel", "", "")
    in_description = ts_document("Inverter", "solar panel compatible", "")
    assert ts_rank(in_name, "solar panel") > ts_rank(in_description, "solar panel") > 0
