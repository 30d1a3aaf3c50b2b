"""Tests for word counts, vocabulary difference and the two queries."""

from collections import Counter

import pytest

from wordminer.frequency import (count_word, materialize, reaggregate, search_lines,
                                 top_words, unique_words, word_counts)

TOKENS = [
    ("watson", "doyle"), ("watson", "doyle"), ("watson", "doyle"),
    ("baker", "doyle"), ("baker", "doyle"),
    ("river", "doyle"),
    ("lestrade", "doyle"),
    ("river", "twain"), ("river", "twain"), ("river", "twain"), ("river", "twain"),
    ("raft", "twain"), ("raft", "twain"),
    ("baker", "twain"),
]


@pytest.fixture
def tokens(spark):
    return spark.createDataFrame(TOKENS, "word string, author string")


def as_dict(df):
    return {(row.author, row.word): row.n for row in df.collect()}


def test_word_counts_match_a_recount(tokens):
    counts = word_counts(tokens)
    expected = Counter((author, word) for word, author in TOKENS)

    assert counts.columns == ["author", "word", "n"]
    assert as_dict(counts) == dict(expected)
    assert all(n >= 1 for n in as_dict(counts).values())


def test_word_counts_sorted_by_count_then_word(tokens):
    rows = [(row.word, row.n) for row in word_counts(tokens).collect()]
    assert rows[0] == ("river", 4)
    assert rows[1] == ("watson", 3)
    ## equal counts come in word order
    assert rows[2:4] == [("baker", 2), ("raft", 2)]
    assert [n for _, n in rows] == sorted((n for _, n in rows), reverse=True)


def test_reaggregate_is_a_no_op_on_counts(tokens):
    counts = word_counts(tokens)
    again = reaggregate(counts)
    assert as_dict(again) == as_dict(counts)
    assert [tuple(row) for row in again.collect()] == [tuple(row) for row in counts.collect()]


def test_unique_words_anti_join(tokens):
    counts = word_counts(tokens)
    unique = unique_words(counts, "doyle", "twain")
    rows = [(row.word, row.n) for row in unique.collect()]

    ## baker and river are used by twain, whatever their count
    assert rows == [("watson", 3), ("lestrade", 1)]

    doyle = {word: n for (author, word), n in as_dict(counts).items() if author == "doyle"}
    twain = {word for (author, word) in as_dict(counts) if author == "twain"}
    for word, n in rows:
        assert word not in twain
        assert doyle[word] == n


def test_unique_words_other_direction(tokens):
    unique = unique_words(word_counts(tokens), "twain", "doyle")
    assert [(row.word, row.n) for row in unique.collect()] == [("raft", 2)]


def test_unique_words_same_author():
    with pytest.raises(ValueError):
        unique_words(None, "doyle", "doyle")


def test_top_words_limit(tokens):
    counts = word_counts(tokens).where("author = 'doyle'")
    assert top_words(counts, 2) == [("watson", 3), ("baker", 2)]
    assert len(top_words(counts, 100)) == 4


def test_count_word_ignores_case(spark):
    tokens = spark.createDataFrame([
        ("Sherlock", "twain"), ("sherlock", "twain"), ("SHERLOCK", "twain"),
        ("sherlocked", "twain"), ("sherlock", "doyle"),
    ], "word string, author string")

    assert count_word(tokens, "twain", "sherlock") == 3
    assert count_word(tokens, "doyle", "Sherlock") == 1
    assert count_word(tokens, "twain", "watson") == 0


def test_search_lines_is_substring_search(lines_df):
    lines = lines_df([
        ("Then Sherlock came in.", "twain"),
        ("He was sherlocked again", "twain"),
        ("Nothing to see", "twain"),
        ("SHERLOCK HOLMES", "doyle"),
    ])

    assert search_lines(lines, "sherlock", author="twain") == \
        ["Then Sherlock came in.", "He was sherlocked again"]
    assert search_lines(lines, "Sherlock") == \
        ["Then Sherlock came in.", "He was sherlocked again", "SHERLOCK HOLMES"]
    assert search_lines(lines, "moriarty") == []


def test_materialize_caches(tokens):
    cached, rows = materialize(tokens, "tokens")
    assert rows == len(TOKENS)
    assert cached.is_cached
    cached.unpersist()
