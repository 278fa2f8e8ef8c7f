# reclaim_idle/errors.py
from __future__ import annotations


class ReclaimIdleError(Exception):
    """Base class for everything this package raises."""


class AnnotationParseError(ReclaimIdleError, ValueError):
    """A PriorityClass annotation holds a value that is not a valid number."""

    def __init__(self, key: str, value: str, reason: str):
        self.key = key
        self.value = value
        super().__init__(f"annotation {key}={value!r}: {reason}")


class PriorityOverflowError(ReclaimIdleError, OverflowError):
    """Default minimum preemptable priority (value + 1) does not fit int32."""


class EndpointLookupError(ReclaimIdleError, LookupError):
    """Prometheus service address could not be resolved."""


class PrometheusClientError(ReclaimIdleError):
    """Prometheus client cannot be built for the given address."""


class PrometheusQueryError(ReclaimIdleError):
    """Query failed, was rejected by prometheus or came back with warnings."""


class ResultTypeError(ReclaimIdleError, TypeError):
    """Query result is not a single scalar."""
