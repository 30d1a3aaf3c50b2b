"""
Loading of the raw corpora: one row per line of text, tagged with its author.
"""
import os
from pathlib import Path

from loguru import logger
from pyspark.sql.functions import lit

## Schemes Spark resolves itself, anything else is a local path
URI_SCHEMES = ("file://", "s3a://", "s3://", "hdfs://", "gs://", "abfss://")


def to_uri(path):
    """
    Turn a local path into a file:// URI. Paths that already carry a scheme are kept.
    """
    path = str(path)
    if path.startswith(URI_SCHEMES):
        return path
    return Path(os.path.expanduser(path)).resolve().as_uri()


def load_author(spark, path, author):
    """
    Read a text file as a DataFrame of (line, author).

    Args:
        spark: Active SparkSession
        path (str): Local path or URI of the text file
        author (str): Literal label attached to every line
    """
    uri = to_uri(path)
    logger.info(f"Loading {author} from: {uri}")
    return spark.read.text(uri) \
        .withColumnRenamed("value", "line") \
        .withColumn("author", lit(author))


def load_corpora(spark, corpora):
    """
    Load every (author, path) pair, keeping the given order.

    Args:
        spark: Active SparkSession
        corpora (dict): author label -> path
    Returns:
        dict: author label -> DataFrame of (line, author)
    """
    if len(corpora) < 2:
        raise ValueError(f"At least two corpora are needed, got {len(corpora)}")
    return {author: load_author(spark, path, author) for author, path in corpora.items()}
