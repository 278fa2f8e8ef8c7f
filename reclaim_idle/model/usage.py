# reclaim_idle/model/usage.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..types import ResourceType


@dataclass(frozen=True)
class QueryResult:
    """Raw `data` section of a prometheus /api/v1/query response."""
    result_type: str             # scalar | vector | matrix | string
    result: Any


@dataclass(frozen=True)
class ResourceUsageSample:
    """
    One scalar sample. timestamp is the evaluation time in unix seconds
    (float, as on the prometheus wire), not milliseconds.
    """
    value: float       # never NaN
    timestamp: float


@dataclass(frozen=True)
class IdlenessReport:
    """
    Usage of one resource over the policy window, compared to the threshold.

    A usage of 0.0 is also what the evaluator returns when prometheus is
    unavailable, so `idle` may be True for a pod that was never measured.
    """
    resource_type: ResourceType
    window_seconds: int
    usage: float
    threshold: float
    idle: bool
