import os
import shutil

import pytest


def _has_java():
    java_home = os.environ.get("JAVA_HOME")
    if java_home and os.path.exists(os.path.join(java_home, "bin", "java")):
        return True
    return shutil.which("java") is not None


@pytest.fixture(scope="session")
def spark():
    if not _has_java():
        pytest.skip("Spark tests need a Java runtime")
    from pyspark.sql import SparkSession

    spark = SparkSession.builder \
        .appName("wordminer-tests") \
        .master("local[1]") \
        .config("spark.sql.shuffle.partitions", "2") \
        .config("spark.ui.enabled", "false") \
        .getOrCreate()
    spark.sparkContext.setLogLevel("ERROR")
    yield spark
    spark.stop()


@pytest.fixture
def write_text(tmp_path):
    """Write lines into a file under tmp_path and return its path."""
    def _write(name, lines):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def lines_df(spark):
    """Build a (line, author) DataFrame from a list of tuples."""
    def _build(rows):
        return spark.createDataFrame(rows, "line string, author string")
    return _build


class FakeStageMetrics:
    """Stands in for sparkmeasure's StageMetrics, which needs the JVM jar."""

    instances = []

    def __init__(self, spark, fail=False):
        self.spark = spark
        self.fail = fail
        self.calls = []
        FakeStageMetrics.instances.append(self)

    def begin(self):
        self.calls.append("begin")

    def end(self):
        self.calls.append("end")

    def print_report(self):
        print("numStages => 7")

    def print_memory_report(self):
        print("peakExecutionMemory => 1024")

    def aggregate_stagemetrics(self):
        if self.fail:
            raise RuntimeError("no stage metrics")
        return {"numStages": 7, "elapsedTime": 1234}


@pytest.fixture
def fake_stagemetrics(monkeypatch):
    from wordminer import metrics

    FakeStageMetrics.instances = []
    monkeypatch.setattr(metrics, "StageMetrics", FakeStageMetrics)
    return FakeStageMetrics
