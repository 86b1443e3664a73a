"""Shared constants: defaults, Helm repository names and known products."""

from datetime import timedelta

REDACTED_PASSWORD = "placeholder"
PASSWORD_LENGTH = 32

DEFAULT_OPERATOR_NAMESPACE = "stackable-operators"
# Many demos can still only run in the default namespace.
DEFAULT_PRODUCT_NAMESPACE = "default"

DEFAULT_LOCAL_CLUSTER_NAME = "stackable-data-platform"

DEFAULT_AUTO_PURGE_INTERVAL = timedelta(minutes=15)
DEFAULT_CACHE_MAX_AGE = timedelta(hours=1)
CACHE_LAST_AUTO_PURGE_FILEPATH = ".cache-last-purge"
CACHE_PROTECTED_FILES = (".cache-last-purge",)

HELM_REPO_NAME_STABLE = "stackable-stable"
HELM_REPO_NAME_TEST = "stackable-test"
HELM_REPO_NAME_DEV = "stackable-dev"
HELM_REPO_INDEX_FILE = "index.yaml"

HELM_DEFAULT_CHART_VERSION = ">0.0.0-0"
HELM_ERROR_PREFIX = "ERROR:"

PRODUCT_NAMES = (
    "airflow",
    "druid",
    "hbase",
    "hdfs",
    "hive",
    "kafka",
    "nifi",
    "opa",
    "spark-history-server",
    "superset",
    "trino",
    "zookeeper",
)