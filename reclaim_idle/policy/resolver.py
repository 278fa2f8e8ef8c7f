# reclaim_idle/policy/resolver.py
from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, Mapping, Optional, Tuple

from .. import constants
from ..errors import AnnotationParseError, PriorityOverflowError, ReclaimIdleError
from ..model.policy import Policy
from ..types import INT32_MAX, INT32_MIN, INT64_MAX, INT64_MIN, Priority, Seconds

log = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?[0-9]+")

RECLAIM_IDLE_ANNOTATIONS = (
    constants.ANNOTATION_KEY_MINIMUM_PREEMPTABLE_PRIORITY,
    constants.ANNOTATION_KEY_TOLERATION_SECONDS,
    constants.ANNOTATION_KEY_CPU_IDLE_SECONDS,
    constants.ANNOTATION_KEY_GPU_IDLE_SECONDS,
    constants.ANNOTATION_KEY_CPU_IDLE_USAGE_THRESHOLD,
    constants.ANNOTATION_KEY_GPU_IDLE_USAGE_THRESHOLD,
)


def _parse_int(key: str, value: str, lo: int, hi: int) -> int:
    # base 10 only: no whitespace, underscores or 0x prefixes
    if not _INT_RE.fullmatch(value):
        raise AnnotationParseError(key, value, "invalid syntax")
    n = int(value, 10)
    if n < lo or n > hi:
        raise AnnotationParseError(key, value, "value out of range")
    return n


def _parse_float(key: str, value: str) -> float:
    if not value or value != value.strip() or "_" in value:
        raise AnnotationParseError(key, value, "invalid syntax")
    try:
        f = float(value)
    except ValueError as e:
        raise AnnotationParseError(key, value, "invalid syntax") from e
    if math.isinf(f) and "inf" not in value.lower():
        raise AnnotationParseError(key, value, "value out of range")
    return f


def default_minimum_preemptable_priority(priority: int) -> Priority:
    """value + 1, so that only strictly higher priorities may preempt."""
    if priority >= INT32_MAX:
        raise PriorityOverflowError(
            f"priority {priority} + 1 does not fit int32; "
            f"set {constants.ANNOTATION_KEY_MINIMUM_PREEMPTABLE_PRIORITY} explicitly"
        )
    return Priority(priority + 1)


def parse_policy(annotations: Optional[Mapping[str, str]], priority: int) -> Policy:
    """
    Build the policy of a PriorityClass from its annotations and value.

    Missing keys take their defaults. The first malformed value aborts with
    AnnotationParseError, so a policy is either complete or not returned.
    """
    ann = annotations or {}

    raw = ann.get(constants.ANNOTATION_KEY_MINIMUM_PREEMPTABLE_PRIORITY)
    if raw is None:
        min_priority = default_minimum_preemptable_priority(priority)
    else:
        min_priority = Priority(_parse_int(
            constants.ANNOTATION_KEY_MINIMUM_PREEMPTABLE_PRIORITY, raw, INT32_MIN, INT32_MAX
        ))

    def seconds(key: str) -> Seconds:
        raw = ann.get(key)
        if raw is None:
            return Seconds(0)
        return Seconds(_parse_int(key, raw, INT64_MIN, INT64_MAX))

    def threshold(key: str) -> float:
        raw = ann.get(key)
        if raw is None:
            return 0.0
        return _parse_float(key, raw)

    toleration = seconds(constants.ANNOTATION_KEY_TOLERATION_SECONDS)
    cpu_idle = seconds(constants.ANNOTATION_KEY_CPU_IDLE_SECONDS)
    gpu_idle = seconds(constants.ANNOTATION_KEY_GPU_IDLE_SECONDS)
    cpu_threshold = threshold(constants.ANNOTATION_KEY_CPU_IDLE_USAGE_THRESHOLD)
    gpu_threshold = threshold(constants.ANNOTATION_KEY_GPU_IDLE_USAGE_THRESHOLD)

    return Policy(
        minimum_preemptable_priority=min_priority,
        toleration_seconds=toleration,
        cpu_idle_seconds=cpu_idle,
        gpu_idle_seconds=gpu_idle,
        cpu_idle_usage_threshold=cpu_threshold,
        gpu_idle_usage_threshold=gpu_threshold,
    )


def _pc_fields(pc: Any) -> Tuple[str, Dict[str, str], int]:
    # kubectl / API JSON
    if isinstance(pc, dict):
        meta = pc.get("metadata") or {}
        return meta.get("name") or "", meta.get("annotations") or {}, int(pc.get("value") or 0)
    # kubernetes.client.V1PriorityClass
    meta = pc.metadata
    name = getattr(meta, "name", None) or ""
    annotations = getattr(meta, "annotations", None) or {}
    return name, annotations, int(pc.value or 0)


def policy_from_priority_class(pc: Any) -> Policy:
    """Policy of a V1PriorityClass or of its JSON (dict) representation."""
    _, annotations, value = _pc_fields(pc)
    return parse_policy(annotations, value)


def has_reclaim_idle_annotations(annotations: Optional[Mapping[str, str]]) -> bool:
    return any(k in (annotations or {}) for k in RECLAIM_IDLE_ANNOTATIONS)


def collect_priority_class_policies(scheduling_api) -> Dict[str, Policy]:
    """
    Resolve the policy of every annotated PriorityClass in the cluster.

    scheduling_api: kubernetes.client.SchedulingV1Api
    Classes with a malformed policy are logged and left out.
    """
    policies: Dict[str, Policy] = {}
    items = scheduling_api.list_priority_class().items or []
    for pc in items:
        name, annotations, value = _pc_fields(pc)
        if not has_reclaim_idle_annotations(annotations):
            continue
        try:
            policies[name] = parse_policy(annotations, value)
        except ReclaimIdleError as e:
            log.error(f"Invalid reclaim-idle policy on PriorityClass {name}: {e}")
    log.info(f"Loaded {len(policies)} reclaim-idle policies")
    return policies
