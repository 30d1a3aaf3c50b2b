"""
Word frequencies per author, vocabulary difference between two authors and
the ad-hoc queries run on the token and line tables.
"""
from loguru import logger
from pyspark.sql.functions import col, instr, lower, sum as spark_sum


def materialize(df, name="table"):
    """
    Cache a DataFrame and force its computation once so later queries reuse it.
    Returns the cached DataFrame and its number of rows.
    """
    df = df.cache()
    rows = df.count()
    logger.info(f"ROWS: {name}: {rows}")
    return df, rows


def sort_by_count(df):
    ## ties broken on the word so the order is reproducible
    return df.orderBy(col("n").desc(), col("word").asc())


def word_counts(tokens):
    """
    Number of occurrences of every (author, word) pair, most frequent first.

    Args:
        tokens: DataFrame of (word, author)
    Returns:
        DataFrame of (author, word, n)
    """
    counts = tokens.groupBy("author", "word").count().withColumnRenamed("count", "n")
    return sort_by_count(counts.select("author", "word", "n"))


def reaggregate(counts):
    """
    Group an already aggregated (author, word, n) table again, summing n.
    On unique keys this gives back the same table.
    """
    counts = counts.groupBy("author", "word").agg(spark_sum("n").alias("n"))
    return sort_by_count(counts.select("author", "word", "n"))


def unique_words(counts, author, other):
    """
    Words used by author that never appear for other, whatever their count.

    Args:
        counts: DataFrame of (author, word, n)
        author (str): Author whose vocabulary is kept
        other (str): Author whose vocabulary is removed
    Returns:
        DataFrame of (word, n) sorted by n
    """
    if author == other:
        raise ValueError(f"Cannot compare {author!r} with itself")
    mine = counts.where(col("author") == author).select("word", "n")
    theirs = counts.where(col("author") == other).select("word")
    return sort_by_count(mine.join(theirs, on="word", how="left_anti"))


def top_words(df, n=100):
    """
    Collect the n most frequent (word, n) pairs into a list of tuples.
    """
    rows = sort_by_count(df).limit(n).collect()
    return [(row["word"], row["n"]) for row in rows]


def count_word(tokens, author, word):
    """
    Count the tokens of author equal to word, ignoring case.
    """
    return tokens.where((col("author") == author) & (lower(col("word")) == word.lower())).count()


def search_lines(lines, term, author=None):
    """
    Raw lines containing term anywhere, ignoring case. This is plain substring
    matching: "sherlock" also finds "sherlocked".

    Args:
        lines: DataFrame with a "line" column (and "author" when author is given)
        term (str): Text to look for
        author (str): Restrict the search to one author
    Returns:
        list of str
    """
    if author is not None:
        lines = lines.where(col("author") == author)
    found = lines.where(instr(lower(col("line")), term.lower()) > 0).select("line")
    return [row["line"] for row in found.collect()]
