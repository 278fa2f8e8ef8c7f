# reclaim_idle/metrics/usage.py
from __future__ import annotations

import logging
from typing import Optional

from ..config import Settings
from ..errors import ReclaimIdleError
from ..model.policy import Policy
from ..model.usage import IdlenessReport
from ..types import ResourceType
from .query import QueryExecutor
from .scalar import extract_scalar

log = logging.getLogger(__name__)

GPU_USAGE_QUERY = 'scalar(avg_over_time(DCGM_FI_PROF_GR_ENGINE_ACTIVE{{exported_pod="{pod}", exported_namespace="{namespace}"}}[{period}]))'
CPU_USAGE_QUERY = 'scalar(sum(rate(container_cpu_usage_seconds_total{{pod="{pod}",namespace="{namespace}",container!=""}}[{period}])) by (pod_name))'


def period_string(seconds: int) -> str:
    return f"{int(seconds)}s"


def _label_value(value: str) -> str:
    # PromQL double-quoted string literal
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def build_usage_query(resource_type: ResourceType, pod: str, namespace: str, period: str) -> str:
    """PromQL for the average usage of a pod over `period` (e.g. "60s")."""
    if resource_type is ResourceType.GPU:
        template = GPU_USAGE_QUERY
    elif resource_type is ResourceType.CPU:
        template = CPU_USAGE_QUERY
    else:
        raise ValueError(f"unknown resource type {resource_type!r}")
    return template.format(pod=_label_value(pod), namespace=_label_value(namespace), period=period)


class UsageEvaluator:
    """
    Average CPU/GPU usage of a pod as reported by prometheus.

    Fails open: if prometheus can't be queried or returns something that is
    not a scalar, the usage is 0.0 and the error is only logged, so a metrics
    outage never blocks scheduling.
    """

    def __init__(self, executor: Optional[QueryExecutor] = None, settings: Optional[Settings] = None):
        self.executor = executor or QueryExecutor(settings or Settings())

    def average_usage(
        self,
        resource_type: ResourceType,
        pod: str,
        namespace: str,
        address: str,
        period_seconds: int,
    ) -> float:
        query = build_usage_query(resource_type, pod, namespace, period_string(period_seconds))
        log.info(query)
        try:
            sample = extract_scalar(self.executor.run(query, address))
        except ReclaimIdleError as e:
            log.warning(
                f"Using 0 {resource_type.value} usage for {namespace}/{pod} "
                f"over {period_seconds}s, metrics unavailable: {e}"
            )
            return 0.0
        except Exception as e:
            log.exception(
                f"Using 0 {resource_type.value} usage for {namespace}/{pod} "
                f"over {period_seconds}s, unexpected metrics error: {e}"
            )
            return 0.0
        return sample.value

    def average_cpu_usage(self, pod: str, namespace: str, address: str, period_seconds: int) -> float:
        return self.average_usage(ResourceType.CPU, pod, namespace, address, period_seconds)

    def average_gpu_usage(self, pod: str, namespace: str, address: str, period_seconds: int) -> float:
        return self.average_usage(ResourceType.GPU, pod, namespace, address, period_seconds)

    def evaluate(
        self,
        policy: Policy,
        resource_type: ResourceType,
        pod: str,
        namespace: str,
        address: str,
    ) -> IdlenessReport:
        window = int(policy.idle_seconds(resource_type))
        threshold = policy.idle_usage_threshold(resource_type)
        if window <= 0:
            # no idle window configured for this resource
            return IdlenessReport(resource_type, window, 0.0, threshold, idle=False)

        usage = self.average_usage(resource_type, pod, namespace, address, window)
        return IdlenessReport(resource_type, window, usage, threshold, idle=usage < threshold)
