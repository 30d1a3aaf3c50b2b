import io
import os
import sys

import pandas as pd
import pyspark
from loguru import logger
from sparkmeasure import StageMetrics


def sparkmeasure_package(spark_version=pyspark.__version__):
    """
    Maven coordinate of the spark-measure jar matching the Scala build of pyspark.
    Spark 4 is built with Scala 2.13, Spark 3 with 2.12.
    """
    major = int(spark_version.split(".")[0])
    scala = "2.13" if major >= 4 else "2.12"
    return f"ch.cern.sparkmeasure:spark-measure_{scala}:0.27"


class RunMetrics:
    """
    Stage metrics of a whole run, collected with sparkmeasure and saved next
    to the run log.
    """

    def __init__(self, spark, save_dir, run_name):
        self.stagemetrics = StageMetrics(spark)
        self.save_dir = save_dir
        self.run_name = run_name

    def begin(self):
        self.stagemetrics.begin()

    def end(self):
        self.stagemetrics.end()

    def report(self):
        """
        Text of print_report() and print_memory_report(), which only print to stdout.
        """
        old_stdout = sys.stdout
        sys.stdout = mystdout = io.StringIO()
        try:
            self.stagemetrics.print_report()
            self.stagemetrics.print_memory_report()
        finally:
            sys.stdout = old_stdout
        return mystdout.getvalue()

    def save_csv(self):
        """
        Aggregated stage metrics as a one row csv. Returns the path.
        """
        metrics_dict = dict(self.stagemetrics.aggregate_stagemetrics())
        csv_save_path = os.path.join(self.save_dir, f"{self.run_name}-stagemetrics.csv")
        pd.DataFrame([metrics_dict]).to_csv(csv_save_path, index=False)
        logger.info(f"Captured {len(metrics_dict)} metrics: {list(metrics_dict.keys())[:5]}...")
        return csv_save_path

    def save(self, summary=None):
        """
        Write the csv and the text report. A failure here is logged and does
        not stop the run.

        Args:
            summary (dict): Extra lines written on top of the text report
        """
        os.makedirs(self.save_dir, exist_ok=True)
        try:
            csv_save_path = self.save_csv()
            logger.info(f"saved stagemetrics to {csv_save_path}")
        except Exception as e:
            logger.error(f"Failed to save stagemetrics: {str(e)}")
            logger.exception(e)

        report_path = os.path.join(self.save_dir, f"{self.run_name}-metrics.txt")
        try:
            with open(report_path, "w") as f:
                if summary:
                    f.write("=== Run Summary ===\n\n")
                    for key, value in summary.items():
                        f.write(f"{key}: {value}\n")
                    f.write("\n")
                f.write("=== Report and Memory Report ===\n")
                f.write(self.report())
                f.write("\n")
            logger.info(f"The stage metrics report is saved at: {report_path}")
        except Exception as e:
            logger.error(f"Failed to save the metrics report: {str(e)}")
            logger.exception(e)
        return report_path
