# reclaim_idle/api/server.py
from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from kubernetes import client
from kubernetes.client.rest import ApiException

from ..config import Settings
from ..errors import AnnotationParseError, EndpointLookupError, PriorityOverflowError
from ..metrics.endpoint import MetricsEndpointResolver
from ..metrics.usage import UsageEvaluator
from ..model.policy import Policy
from ..policy.resolver import parse_policy, policy_from_priority_class
from .schema import (
    IdlenessRequest, IdlenessResponse, PolicyModel, PolicyRequest, PolicyResponse,
    UsageRequest, UsageResponse,
)

app = FastAPI(title="reclaim-idle")

log = logging.getLogger("uvicorn")

# --- STATE ---
# Filled once by the launcher (or tests); the defaults are built lazily.
SETTINGS: Optional[Settings] = None
ENDPOINT_RESOLVER: Optional[MetricsEndpointResolver] = None
EVALUATOR: Optional[UsageEvaluator] = None
SCHEDULING_API: Optional[client.SchedulingV1Api] = None


def configure(
    settings: Settings,
    endpoint_resolver: Optional[MetricsEndpointResolver] = None,
    evaluator: Optional[UsageEvaluator] = None,
    scheduling_api: Optional[client.SchedulingV1Api] = None,
) -> None:
    global SETTINGS, ENDPOINT_RESOLVER, EVALUATOR, SCHEDULING_API
    SETTINGS = settings
    ENDPOINT_RESOLVER = endpoint_resolver or MetricsEndpointResolver(settings)
    EVALUATOR = evaluator or UsageEvaluator(settings=settings)
    SCHEDULING_API = scheduling_api


def _settings() -> Settings:
    if SETTINGS is None:
        configure(Settings.from_env())
    return SETTINGS

def get_endpoint_resolver(settings: Settings = Depends(_settings)) -> MetricsEndpointResolver:
    return ENDPOINT_RESOLVER

def get_evaluator(settings: Settings = Depends(_settings)) -> UsageEvaluator:
    return EVALUATOR

def get_scheduling_api(settings: Settings = Depends(_settings)) -> client.SchedulingV1Api:
    global SCHEDULING_API
    if SCHEDULING_API is None:
        SCHEDULING_API = client.SchedulingV1Api()
    return SCHEDULING_API

# --- Helpers ---

def to_policy_model(policy: Policy) -> PolicyModel:
    return PolicyModel(**asdict(policy))

def _resolve_policy(annotations, value: int) -> Policy:
    try:
        return parse_policy(annotations, value)
    except (AnnotationParseError, PriorityOverflowError) as e:
        raise HTTPException(status_code=400, detail=str(e))

def _prometheus_address(resolver: MetricsEndpointResolver) -> str:
    try:
        return resolver.resolve()
    except EndpointLookupError as e:
        raise HTTPException(status_code=503, detail=str(e))

# --- Endpoints ---

@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}

@app.post("/policy", response_model=PolicyResponse)
def resolve_policy(req: PolicyRequest) -> PolicyResponse:
    policy = _resolve_policy(req.annotations, req.value)
    return PolicyResponse(name=req.name, policy=to_policy_model(policy))

@app.get("/priorityclasses/{name}/policy", response_model=PolicyResponse)
def priority_class_policy(
    name: str, api: client.SchedulingV1Api = Depends(get_scheduling_api)
) -> PolicyResponse:
    try:
        pc = api.read_priority_class(name=name)
    except ApiException as e:
        if e.status == 404:
            raise HTTPException(status_code=404, detail=f"PriorityClass {name} not found")
        log.error(f"Failed to read PriorityClass {name}: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    try:
        policy = policy_from_priority_class(pc)
    except (AnnotationParseError, PriorityOverflowError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PolicyResponse(name=name, policy=to_policy_model(policy))

@app.post("/usage", response_model=UsageResponse)
def average_usage(
    req: UsageRequest,
    resolver: MetricsEndpointResolver = Depends(get_endpoint_resolver),
    evaluator: UsageEvaluator = Depends(get_evaluator),
) -> UsageResponse:
    address = _prometheus_address(resolver)
    value = evaluator.average_usage(req.resource_type, req.pod, req.namespace, address, req.period_seconds)
    return UsageResponse(
        resource_type=req.resource_type, pod=req.pod, namespace=req.namespace,
        period_seconds=req.period_seconds, value=value,
    )

@app.post("/idleness", response_model=IdlenessResponse)
def idleness(
    req: IdlenessRequest,
    resolver: MetricsEndpointResolver = Depends(get_endpoint_resolver),
    evaluator: UsageEvaluator = Depends(get_evaluator),
) -> IdlenessResponse:
    policy = _resolve_policy(req.annotations, req.value)
    address = _prometheus_address(resolver)
    report = evaluator.evaluate(policy, req.resource_type, req.pod, req.namespace, address)
    return IdlenessResponse(**asdict(report))
