import re

from loguru import logger
from pyspark.sql import SparkSession

## Memory strings the JVM accepts, e.g. "512m", "8g"
MEMORY_RE = re.compile(r"^\d+[kmgt]?$", re.IGNORECASE)

## Keys accepted in the user facing configuration map
CONFIG_KEYS = ("cores", "driver_mem", "executor_mem", "memory_fraction")

default_cores = 4
default_driver_mem = "8g"
default_memory_fraction = 0.9


def build_session_config(cores=default_cores, driver_mem=default_driver_mem,
                         memory_fraction=default_memory_fraction, executor_mem=None):
    """
    Validate the session parameters and translate them into Spark keys.

    Args:
        cores (int): Local parallelism, used as local[cores]
        driver_mem (str): Memory of the driver (e.g., 8g)
        memory_fraction (float): spark.memory.fraction, between 0 and 1
        executor_mem (str): Memory per executor, only useful on a cluster

    Returns:
        dict: "cores" plus the spark.* keys to pass to the session builder
    """
    cores = int(cores)
    if cores < 1:
        raise ValueError(f"cores should be at least 1, got {cores}")

    memory_fraction = float(memory_fraction)
    if not 0.0 < memory_fraction <= 1.0:
        raise ValueError(f"memory_fraction should be in (0, 1], got {memory_fraction}")

    for name, value in (("driver_mem", driver_mem), ("executor_mem", executor_mem)):
        if value is not None and not MEMORY_RE.match(str(value)):
            raise ValueError(f"{name} should look like 512m or 8g, got {value!r}")

    config = {
        "cores": cores,
        "spark.driver.memory": str(driver_mem),
        "spark.memory.fraction": str(memory_fraction),
    }
    if executor_mem is not None:
        config["spark.executor.memory"] = str(executor_mem)
    return config


def session_config_from_map(options):
    """
    Same as build_session_config but from a plain dict, rejecting unknown keys.
    """
    unknown = sorted(set(options) - set(CONFIG_KEYS))
    if unknown:
        raise ValueError(f"Unknown session configuration keys: {unknown}. "
                         f"Recognised keys are {list(CONFIG_KEYS)}")
    return build_session_config(**options)


class Sparker:
    """
    A class to handle the Spark session used by the text mining pipeline.

    The session is process wide state: it is opened once, shared by every
    stage and stopped by close(). Use it as a context manager so the session
    is released on failures too.
    """

    def __init__(self, access_key=None, secret_key=None, app_name="wordminer"):
        """
        Access key and Secret key are only necessary when reading s3a:// inputs
        from outside the AWS cluster.

        Args:
            access_key (str): AWS access key
            secret_key (str): AWS secret key
            app_name (str): Name shown in the Spark UI
        """
        self.access_key = access_key
        self.secret_key = secret_key
        self.app_name = app_name
        self.spark = None

    def _s3_config(self):
        if not self.access_key or not self.secret_key:
            return {}
        return {
            "spark.hadoop.fs.s3a.impl": "org.apache.hadoop.fs.s3a.S3AFileSystem",
            "spark.hadoop.fs.s3a.access.key": self.access_key,
            "spark.hadoop.fs.s3a.secret.key": self.secret_key,
            "spark.hadoop.fs.s3a.aws.credentials.provider":
                "org.apache.hadoop.fs.s3a.SimpleAWSCredentialsProvider",
            "spark.hadoop.fs.s3a.connection.timeout": "50000",
            "spark.hadoop.fs.s3a.connection.establish.timeout": "30000",
        }

    def _build(self, master, config, log_level="ERROR", packages=None):
        builder = SparkSession.builder \
            .appName(self.app_name) \
            .master(master)

        options = dict(config)
        options.update(self._s3_config())
        if packages:
            options["spark.jars.packages"] = ",".join(packages)

        for key, value in options.items():
            builder = builder.config(key, value)

        spark = builder.getOrCreate()
        spark.sparkContext.setLogLevel(log_level)
        self.spark = spark

        logger.info(f"Session Created! master={master}")
        for key in sorted(config):
            logger.info(f"- {key}= {config[key]}")
        return spark

    def _create_local_session(self, master, config, log_level="ERROR", packages=None):
        """
        Create a local session for a single machine run. A bare "local" becomes
        local[cores]; local[N] and local[*] keep their own parallelism.
        """
        cores = config.pop("cores")
        config.pop("spark.executor.memory", None)
        if master == "local":
            master = f"local[{cores}]"
        else:
            logger.warning(f"cores={cores} ignored, the master {master} sets the parallelism")
        return self._build(master, config, log_level=log_level, packages=packages)

    def _create_on_cluster_session(self, master, config, log_level="ERROR", packages=None):
        """
        Create a session against an existing cluster manager (yarn, spark://...).
        The number of cores is left to the cluster manager.
        """
        config.pop("cores")
        return self._build(master, config, log_level=log_level, packages=packages)

    def connect(self, master="local", log_level="ERROR", packages=None, **options):
        """
        Open the session. Local masters (local, local[N], local[*]) run on this
        machine, anything else is handed to the cluster manager.

        Args:
            master (str): "local" or a Spark master URL
            log_level (str): Spark log level
            packages (list): Maven coordinates added to spark.jars.packages
            options: cores, driver_mem, executor_mem and memory_fraction
        """
        config = session_config_from_map(options)
        if master == "local" or master.startswith("local["):
            return self._create_local_session(master, config, log_level=log_level,
                                              packages=packages)
        return self._create_on_cluster_session(master, config, log_level=log_level,
                                               packages=packages)

    def close(self):
        """
        Stop the Spark session and release resources.
        """
        if self.spark:
            self.spark.stop()
            self.spark = None
            logger.info("Spark session stopped.")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
