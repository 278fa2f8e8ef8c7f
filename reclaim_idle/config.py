# reclaim_idle/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from . import constants


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration, read once at startup and handed to the components.

    env: value of ENV ("development" switches prometheus to localhost).
    """
    env: str = ""
    prometheus_service_name: str = constants.PROMETHEUS_SERVICE_NAME
    prometheus_namespace: str = constants.PROMETHEUS_NAMESPACE
    prometheus_port: int = constants.PROMETHEUS_PORT
    query_timeout_s: float = constants.QUERY_TIMEOUT_SECONDS
    backend_timeout_s: float = constants.BACKEND_TIMEOUT_SECONDS

    @property
    def is_development(self) -> bool:
        return self.env == constants.DEV_ENV_FLAG

    @property
    def is_testing(self) -> bool:
        return self.env == constants.TESTS_ENV_FLAG

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        environ = os.environ if environ is None else environ
        port = environ.get("RECLAIM_IDLE_PROMETHEUS_PORT")
        return cls(
            env=environ.get(constants.ENV_VAR, ""),
            prometheus_service_name=environ.get(
                "RECLAIM_IDLE_PROMETHEUS_SERVICE", constants.PROMETHEUS_SERVICE_NAME
            ),
            prometheus_namespace=environ.get(
                "RECLAIM_IDLE_PROMETHEUS_NAMESPACE", constants.PROMETHEUS_NAMESPACE
            ),
            prometheus_port=int(port) if port else constants.PROMETHEUS_PORT,
        )
