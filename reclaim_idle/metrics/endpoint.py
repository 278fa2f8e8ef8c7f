# reclaim_idle/metrics/endpoint.py
from __future__ import annotations

import logging
from typing import Optional

import urllib3
from kubernetes import client
from kubernetes.client.rest import ApiException

from .. import constants
from ..config import Settings
from ..errors import EndpointLookupError

log = logging.getLogger(__name__)


class MetricsEndpointResolver:
    """
    Finds the address prometheus is reachable at.

    In development mode this is always localhost (port-forwarded prometheus),
    otherwise the ClusterIP of the prometheus service.
    """

    def __init__(self, settings: Settings, core_api: Optional[client.CoreV1Api] = None):
        self.settings = settings
        self._core_api = core_api

    def _api(self) -> client.CoreV1Api:
        if self._core_api is None:
            self._core_api = client.CoreV1Api()
        return self._core_api

    def resolve(self) -> str:
        if self.settings.is_development:
            return constants.DEV_PROMETHEUS_HOST

        name = self.settings.prometheus_service_name
        ns = self.settings.prometheus_namespace
        try:
            svc = self._api().read_namespaced_service(name=name, namespace=ns)
        except (ApiException, urllib3.exceptions.HTTPError, OSError) as e:
            log.error(f"Couldn't fetch prometheus service IP ({ns}/{name}): {e}")
            raise EndpointLookupError(f"prometheus service {ns}/{name} not found: {e}") from e

        cluster_ip = getattr(svc.spec, "cluster_ip", None) if svc.spec else None
        if not cluster_ip or cluster_ip == "None":
            log.error(f"Prometheus service {ns}/{name} has no cluster IP")
            raise EndpointLookupError(f"prometheus service {ns}/{name} has no cluster IP")
        return cluster_ip
