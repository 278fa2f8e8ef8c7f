# reclaim_idle/constants.py
from __future__ import annotations


# --- Annotations ---

ANNOTATION_KEY_PREFIX = "reclaim-idle-resource.scheduling.x-k8s.io/"
ANNOTATION_KEY_MINIMUM_PREEMPTABLE_PRIORITY = ANNOTATION_KEY_PREFIX + "minimum-preemptable-priority"
ANNOTATION_KEY_TOLERATION_SECONDS = ANNOTATION_KEY_PREFIX + "toleration-seconds"
ANNOTATION_KEY_CPU_IDLE_SECONDS = ANNOTATION_KEY_PREFIX + "cpu-idle-seconds"
ANNOTATION_KEY_GPU_IDLE_SECONDS = ANNOTATION_KEY_PREFIX + "gpu-idle-seconds"
ANNOTATION_KEY_CPU_IDLE_USAGE_THRESHOLD = ANNOTATION_KEY_PREFIX + "cpu-idle-usage-threshold"
ANNOTATION_KEY_GPU_IDLE_USAGE_THRESHOLD = ANNOTATION_KEY_PREFIX + "gpu-idle-usage-threshold"

# --- Environment ---

ENV_VAR = "ENV"
DEV_ENV_FLAG = "development"    # local builds, prometheus on localhost
TESTS_ENV_FLAG = "testing"      # unit tests, no special branch

HTTP_PREFIX = "http://"

# --- Prometheus ---

PROMETHEUS_SERVICE_NAME = "prometheus-kube-prometheus-prometheus"
PROMETHEUS_NAMESPACE = "prometheus"
PROMETHEUS_PORT = 9090
PROMETHEUS_QUERY_PATH = "/api/v1/query"
DEV_PROMETHEUS_HOST = "localhost"

QUERY_TIMEOUT_SECONDS = 10.0    # whole HTTP call
BACKEND_TIMEOUT_SECONDS = 5.0   # passed to prometheus as ?timeout=
