# reclaim_idle/model/policy.py
from __future__ import annotations

from dataclasses import dataclass

from ..types import Priority, ResourceType, Seconds


@dataclass(frozen=True)
class Policy:
    """
    Reclaim-idle-resource policy of a PriorityClass.

    Every field comes from an annotation on the PriorityClass, e.g.:

        kind: PriorityClass
        metadata:
          name: toleration-policy-sample
          annotations:
            reclaim-idle-resource.scheduling.x-k8s.io/minimum-preemptable-priority: "10000"
            reclaim-idle-resource.scheduling.x-k8s.io/toleration-seconds: "3600"
            reclaim-idle-resource.scheduling.x-k8s.io/gpu-idle-seconds: "3600"
            reclaim-idle-resource.scheduling.x-k8s.io/gpu-idle-usage-threshold: "0.1"
    """
    # Lowest priority allowed to preempt this class. Defaults to value + 1.
    minimum_preemptable_priority: Priority

    # 0 - preempted immediately, > 0 - tolerated for that long,
    # < 0 - never preempted by priorities below minimum_preemptable_priority.
    # Affects scheduled pods only.
    toleration_seconds: Seconds = Seconds(0)

    # Averaging windows for the idleness check.
    cpu_idle_seconds: Seconds = Seconds(0)
    gpu_idle_seconds: Seconds = Seconds(0)

    # Usage below the threshold is idle.
    cpu_idle_usage_threshold: float = 0.0
    gpu_idle_usage_threshold: float = 0.0

    def idle_seconds(self, resource_type: ResourceType) -> Seconds:
        if resource_type is ResourceType.GPU:
            return self.gpu_idle_seconds
        return self.cpu_idle_seconds

    def idle_usage_threshold(self, resource_type: ResourceType) -> float:
        if resource_type is ResourceType.GPU:
            return self.gpu_idle_usage_threshold
        return self.cpu_idle_usage_threshold

    @property
    def tolerates_forever(self) -> bool:
        return self.toleration_seconds < 0
