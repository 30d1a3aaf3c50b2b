"""
Word frequency mining of literary corpora with Spark.
"""
__version__ = "0.1.0"
