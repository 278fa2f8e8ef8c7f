# reclaim_idle/api/schema.py
from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field

from ..types import INT32_MAX, INT32_MIN, ResourceType

# pod names are DNS-1123 subdomains, namespaces DNS-1123 labels
POD_NAME_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"
NAMESPACE_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"


class PolicyModel(BaseModel):
    minimum_preemptable_priority: int
    toleration_seconds: int
    cpu_idle_seconds: int
    gpu_idle_seconds: int
    cpu_idle_usage_threshold: float
    gpu_idle_usage_threshold: float

class PolicyRequest(BaseModel):
    """PriorityClass as far as the policy is concerned."""
    name: Optional[str] = None
    value: int = Field(..., ge=INT32_MIN, le=INT32_MAX)
    annotations: Dict[str, str] = Field(default_factory=dict)

class PolicyResponse(BaseModel):
    name: Optional[str] = None
    policy: PolicyModel

class UsageRequest(BaseModel):
    resource_type: ResourceType
    pod: str = Field(..., max_length=253, pattern=POD_NAME_PATTERN)
    namespace: str = Field(..., max_length=63, pattern=NAMESPACE_PATTERN)
    period_seconds: int = Field(..., gt=0)

class UsageResponse(BaseModel):
    resource_type: ResourceType
    pod: str
    namespace: str
    period_seconds: int
    value: float

class IdlenessRequest(BaseModel):
    resource_type: ResourceType
    pod: str = Field(..., max_length=253, pattern=POD_NAME_PATTERN)
    namespace: str = Field(..., max_length=63, pattern=NAMESPACE_PATTERN)
    # PriorityClass of the pod
    value: int = Field(..., ge=INT32_MIN, le=INT32_MAX)
    annotations: Dict[str, str] = Field(default_factory=dict)

class IdlenessResponse(BaseModel):
    resource_type: ResourceType
    window_seconds: int
    usage: float
    threshold: float
    idle: bool
