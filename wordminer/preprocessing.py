from functools import reduce

from loguru import logger
from pyspark.ml.feature import RegexTokenizer, StopWordsRemover
from pyspark.sql.functions import col, explode, length, regexp_replace, trim

from wordminer.loader import to_uri

## Characters replaced by a space before tokenizing
PUNCTUATION_PATTERN = r"[_\"'():;,.!?\-]"

## Whitespace runs separate the tokens
TOKEN_GAP_PATTERN = r"\s+"

default_min_length = 3


def bind_authors(frames):
    """
    Stack the (line, author) DataFrames of every author into one.

    Args:
        frames: iterable of DataFrames, or a dict author -> DataFrame
    """
    if isinstance(frames, dict):
        frames = list(frames.values())
    frames = list(frames)
    if not frames:
        raise ValueError("No corpus to bind")
    return reduce(lambda left, right: left.unionByName(right), frames)


def load_stop_words(spark, path):
    """
    Read a stop-word file, one word per line, blank lines ignored. Local paths
    are read as file:// URIs, like the corpora.
    """
    uri = to_uri(path)
    logger.info(f"Reading stop words from: {uri}")
    rows = spark.read.text(uri).collect()
    return [row.value.strip() for row in rows if row.value and row.value.strip()]


class PreProcessing():
    """
    Turns the raw (line, author) rows into one (word, author) row per kept token.
    Each step replaces self.df and returns it, so steps can be run one by one.
    """

    def __init__(self, spark_df):
        self.df = spark_df

    def sampling(self, sample_size=0.1, seed=None):
        """
        Returns a sample dataset for quick prototype
        """
        if not 0.0 < sample_size < 1.0:
            raise ValueError("Sample size should be a float value between 0 and 1.")
        self.df = self.df.sample(fraction=sample_size, seed=seed)
        return self.df

    def drop_empty_lines(self):
        """
        Remove null lines and lines that are empty once trimmed
        """
        self.df = self.df.where(col("line").isNotNull() & (trim(col("line")) != ""))
        return self.df

    def strip_punctuation(self):
        """
        Replace every punctuation character of PUNCTUATION_PATTERN by one space.
        Casing is left untouched.
        """
        self.df = self.df.withColumn("line", regexp_replace(col("line"), PUNCTUATION_PATTERN, " "))
        return self.df

    def normalize(self):
        self.drop_empty_lines()
        return self.strip_punctuation()

    def tokenize(self):
        """
        Split the lines on whitespace runs into the "word_list" array column
        """
        tokenizer = RegexTokenizer(inputCol="line",
                                   outputCol="word_list",
                                   pattern=TOKEN_GAP_PATTERN,
                                   gaps=True,
                                   toLowercase=False)
        self.df = tokenizer.transform(self.df)
        return self.df

    def remove_stop_words(self, stop_words=None, language="english", locale="en_US"):
        """
        Drop the stop words from "word_list" into "wo_stop_words".
        The comparison ignores case.

        Args:
            stop_words (list): Custom list. Default is Spark's list for language
            language (str): Language of the default list
            locale (str): Locale used to lower case when comparing
        """
        if stop_words is None:
            stop_words = StopWordsRemover.loadDefaultStopWords(language)
        remover = StopWordsRemover(inputCol="word_list",
                                   outputCol="wo_stop_words",
                                   stopWords=list(stop_words),
                                   caseSensitive=False,
                                   locale=locale)
        self.df = remover.transform(self.df)
        return self.df

    def explode_words(self, min_length=default_min_length):
        """
        One row per remaining token, keeping only (word, author) and tokens
        at least min_length characters long.
        """
        self.df = self.df.select(explode(col("wo_stop_words")).alias("word"), col("author")) \
                         .where(length(col("word")) >= min_length)
        return self.df

    def apply_all(self, stop_words=None, language="english", min_length=default_min_length):
        """Apply all preprocessing steps"""
        logger.debug("Preprocessing: normalize, tokenize, stop words, explode")
        self.normalize()
        self.tokenize()
        self.remove_stop_words(stop_words=stop_words, language=language)
        self.explode_words(min_length=min_length)
        return self.df
