"""
Command line entry point: compare the vocabulary of two authors.

how to run:
    wordminer --corpus doyle=arthur_doyle.txt --corpus twain=mark_twain.txt \
        --cores 4 --driver-mem 8g --wordcloud doyle_unique.png

on a cluster:
    spark-submit --master yarn wordminer/__main__.py --master yarn \
        --corpus doyle=s3a://bucket/arthur_doyle.txt --corpus twain=s3a://bucket/mark_twain.txt
"""
import argparse
import os
import time
from datetime import datetime

from loguru import logger

from wordminer.frequency import (count_word, materialize, search_lines, top_words,
                                 unique_words, word_counts)
from wordminer.loader import load_corpora
from wordminer.metrics import RunMetrics, sparkmeasure_package
from wordminer.preprocessing import PreProcessing, bind_authors, load_stop_words
from wordminer.renderer import render_wordcloud
from wordminer.sparker import Sparker, build_session_config


def parse_corpus(value):
    """
    argparse type for AUTHOR=PATH
    """
    author, sep, path = value.partition("=")
    author, path = author.strip(), path.strip()
    if not sep or not author or not path:
        raise argparse.ArgumentTypeError(f"expected AUTHOR=PATH, got {value!r}")
    return author, path


def build_parser():
    parser = argparse.ArgumentParser(prog="wordminer",
                                     description="Word frequencies of two authors with Spark")
    parser.add_argument("--corpus", type=parse_corpus, action="append", required=True,
                        metavar="AUTHOR=PATH", help="Author label and text file, at least two")
    parser.add_argument("--author", help="Author whose unique words are shown (default: first corpus)")
    parser.add_argument("--other", help="Author compared against (default: second corpus)")
    parser.add_argument("--top", type=int, default=100, help="Number of unique words to keep")
    parser.add_argument("--query-word", default="sherlock", help="Word counted and searched for")
    parser.add_argument("--query-author", help="Author queried (default: second corpus)")

    parser.add_argument("--stop-words-file", help="Stop words, one per line, instead of Spark's list")
    parser.add_argument("--language", default="english", help="Language of Spark's stop words")
    parser.add_argument("--min-length", type=int, default=3, help="Shortest word kept")
    parser.add_argument("--sampling", type=float, help="Fraction of the lines to be sampled")
    parser.add_argument("--seed", type=int, help="Seed of the sampling")

    parser.add_argument("--master", default="local", help="Spark master (local, yarn, spark://...)")
    parser.add_argument("--cores", type=int, default=4, help="Local cores")
    parser.add_argument("--driver-mem", default="8g", help="Driver memory (e.g., 8g)")
    parser.add_argument("--executor-mem", help="Executor memory (e.g., 4g)")
    parser.add_argument("--memory-fraction", type=float, default=0.9, help="spark.memory.fraction")
    parser.add_argument("--access-key", help="ACCESS_KEY for s3a inputs")
    parser.add_argument("--access-secret", help="ACCESS_SECRET for s3a inputs")
    parser.add_argument("--log-level", default="ERROR", help="Spark log level")

    parser.add_argument("--wordcloud", help="Save the word cloud to this image instead of showing it")
    parser.add_argument("--no-plot", action="store_true", help="Do not draw the word cloud")
    parser.add_argument("--metrics", action="store_true", help="Collect sparkmeasure stage metrics")
    parser.add_argument("--log-dir", default="logs", help="Directory of the log and metrics files")
    return parser


def parse_args(argv=None):
    """
    Parse and check the arguments. Every check runs before Spark is started.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    corpora = dict(args.corpus)
    if len(corpora) < 2 or len(corpora) != len(args.corpus):
        parser.error("--corpus needs at least two distinct authors")
    args.corpora = corpora

    authors = list(corpora)
    args.author = args.author or authors[0]
    args.other = args.other or authors[1]
    args.query_author = args.query_author or authors[1]
    for name in ("author", "other", "query_author"):
        if getattr(args, name) not in corpora:
            parser.error(f"--{name.replace('_', '-')} {getattr(args, name)!r} is not a corpus author")
    if args.author == args.other:
        parser.error("--author and --other should be different")

    if args.top < 1:
        parser.error("--top should be at least 1")
    if args.min_length < 1:
        parser.error("--min-length should be at least 1")
    if args.sampling is not None and not 0.0 < args.sampling < 1.0:
        parser.error("--sampling should be a float value between 0 and 1")

    try:
        build_session_config(cores=args.cores, driver_mem=args.driver_mem,
                             memory_fraction=args.memory_fraction,
                             executor_mem=args.executor_mem)
    except ValueError as e:
        parser.error(str(e))
    return args


def run_pipeline(spark, corpora, author, other, query_word="sherlock", query_author=None,
                 stop_words=None, language="english", min_length=3, sampling=None, seed=None,
                 top=100):
    """
    Load, clean and count the corpora, then compare the two authors.

    Sampling keeps a fraction of the merged lines; the token counts and the
    line search both run on that sample.

    Returns:
        dict with the DataFrames ("lines", "tokens", "counts", "unique") and the
        collected results ("top", "query_count", "matches", "token_rows")
    """
    query_author = query_author or other

    ## 1. Load every corpus
    logger.info("Loading corpora")
    frames = load_corpora(spark, corpora)

    ## 2. Preprocessing
    logger.info("Preprocessing")
    step_time = time.time()
    preprocessing = PreProcessing(bind_authors(frames))
    if sampling is not None:
        preprocessing.sampling(sample_size=sampling, seed=seed)
    lines = preprocessing.df
    tokens = preprocessing.apply_all(stop_words=stop_words, language=language,
                                     min_length=min_length)

    ## the token table is reused by the counts and the queries
    tokens, token_rows = materialize(tokens, "tokens")
    logger.info(f"TIME: Preprocessing: {time.time() - step_time:.4f}")

    ## 3. Word frequencies
    step_time = time.time()
    counts = word_counts(tokens)
    unique = unique_words(counts, author, other)
    top = top_words(unique, top)
    logger.info(f"TIME: Frequencies: {time.time() - step_time:.4f}")

    ## 4. Queries
    step_time = time.time()
    query_count = count_word(tokens, query_author, query_word)
    matches = search_lines(lines, query_word, author=query_author)
    logger.info(f"TIME: Queries: {time.time() - step_time:.4f}")

    return {
        "lines": lines,
        "tokens": tokens,
        "counts": counts,
        "unique": unique,
        "top": top,
        "token_rows": token_rows,
        "query_count": query_count,
        "matches": matches,
    }


def print_results(args, results):
    print("\n==============< Most frequent words >=============== ")
    results["counts"].show(10, truncate=False)

    print(f"\n======< Words of {args.author} never used by {args.other} >====== ")
    for word, n in results["top"][:20]:
        print(f"{word:<20} {n}")

    print(f"\n{args.query_author} uses {args.query_word!r} {results['query_count']} times")
    print(f"{len(results['matches'])} lines of {args.query_author} mention {args.query_word!r}:")
    for line in results["matches"][:10]:
        print(f"  {line}")
    print("================================================= ")


def run(args, run_name):
    """
    One whole run: open the session, run the pipeline, print, save the metrics
    and draw the word cloud. The session is stopped whatever happens.
    """
    packages = [sparkmeasure_package()] if args.metrics else None
    start_time = time.time()

    with Sparker(access_key=args.access_key, secret_key=args.access_secret) as sparker:
        spark = sparker.connect(master=args.master,
                                log_level=args.log_level,
                                packages=packages,
                                cores=args.cores,
                                driver_mem=args.driver_mem,
                                executor_mem=args.executor_mem,
                                memory_fraction=args.memory_fraction)

        metrics = RunMetrics(spark, args.log_dir, run_name) if args.metrics else None
        if metrics:
            metrics.begin()

        try:
            stop_words = load_stop_words(spark, args.stop_words_file) if args.stop_words_file else None
            results = run_pipeline(spark, args.corpora, args.author, args.other,
                                   query_word=args.query_word,
                                   query_author=args.query_author,
                                   stop_words=stop_words,
                                   language=args.language,
                                   min_length=args.min_length,
                                   sampling=args.sampling,
                                   seed=args.seed,
                                   top=args.top)
            print_results(args, results)
        except Exception as e:
            logger.error(f"Pipeline failed: {str(e)}")
            logger.exception(e)
            raise

        if metrics:
            metrics.end()
            metrics.save(summary={
                "Corpora": args.corpora,
                "Token rows": results["token_rows"],
                "Unique words kept": len(results["top"]),
            })

    logger.info(f"TIME: Final Time: {time.time() - start_time:.5f}")

    if not args.no_plot:
        render_wordcloud(results["top"], output=args.wordcloud,
                         title=f"{args.author} words never used by {args.other}")
    return results["top"]


def main(argv=None):
    args = parse_args(argv)

    run_name = f"{datetime.today().strftime('%d-%m-%Y_%Hh-%Mmin')}-wordminer"
    os.makedirs(args.log_dir, exist_ok=True)
    sink = logger.add(os.path.join(args.log_dir, f"{run_name}.log"))

    logger.info(f"Corpora: {args.corpora}")
    logger.info(f"Master: {args.master} | Cores: {args.cores}")
    logger.info(f"Driver memory: {args.driver_mem} | Executor memory: {args.executor_mem}")
    logger.info(f"Memory fraction: {args.memory_fraction}")
    logger.info(f"Sampling: {args.sampling} | Seed: {args.seed}")

    try:
        run(args, run_name)
        logger.info("Concluded!")
    finally:
        logger.remove(sink)
