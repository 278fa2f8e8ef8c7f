# reclaim_idle/metrics/query.py
from __future__ import annotations

import json
import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional, Tuple

import requests
import urllib3

from .. import constants
from ..config import Settings
from ..errors import PrometheusClientError, PrometheusQueryError
from ..model.usage import QueryResult

log = logging.getLogger(__name__)

_LABEL_RE = re.compile(r"[A-Za-z0-9_-]{1,63}")
_IPV6_RE = re.compile(r"\[?[0-9A-Fa-f:.]+\]?")


def _host_part(address: str) -> str:
    labels = address.split(".")
    if 0 < len(address) <= 253 and all(_LABEL_RE.fullmatch(label) for label in labels):
        return address
    if address.count(":") >= 2 and _IPV6_RE.fullmatch(address):
        return address if address.startswith("[") else f"[{address}]"
    raise PrometheusClientError(f"invalid prometheus address {address!r}")


def prometheus_base_url(address: str, port: int = constants.PROMETHEUS_PORT) -> str:
    return f"{constants.HTTP_PREFIX}{_host_part(address)}:{port}"


class QueryExecutor:
    """
    Runs one instant query against prometheus.

    Single attempt, no retries. The whole HTTP call, body included, must finish
    within settings.query_timeout_s; prometheus itself gets
    settings.backend_timeout_s. Warnings in the response are treated as a
    failed query.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session

    def _prepare(self, query: str, address: str) -> requests.PreparedRequest:
        url = prometheus_base_url(address, self.settings.prometheus_port) + constants.PROMETHEUS_QUERY_PATH
        params = {
            "query": query,
            "time": f"{time.time():.3f}",
            "timeout": f"{self.settings.backend_timeout_s:g}s",
        }
        try:
            return requests.Request("GET", url, params=params).prepare()
        except (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema,
                requests.exceptions.InvalidSchema, urllib3.exceptions.LocationValueError) as e:
            raise PrometheusClientError(f"invalid prometheus address {address!r}: {e}") from e

    def _fetch(self, session: requests.Session, prepared: requests.PreparedRequest,
               deadline: float) -> Tuple[int, bytes]:
        resp = session.send(prepared, stream=True, timeout=self.settings.query_timeout_s)
        try:
            chunks = []
            for chunk in resp.iter_content(chunk_size=8192):
                chunks.append(chunk)
                if time.monotonic() > deadline:
                    raise PrometheusQueryError(
                        f"prometheus response not complete within {self.settings.query_timeout_s:g}s"
                    )
            return resp.status_code, b"".join(chunks)
        finally:
            resp.close()

    def run(self, query: str, address: str) -> QueryResult:
        try:
            prepared = self._prepare(query, address)
        except PrometheusClientError as e:
            log.error(f"Error creating prometheus client: {e}")
            raise

        timeout = self.settings.query_timeout_s
        deadline = time.monotonic() + timeout
        session = self.session or requests.Session()
        # the worker is abandoned on timeout, its own reads stop at the deadline
        pool = ThreadPoolExecutor(max_workers=1)
        try:
            status_code, content = pool.submit(self._fetch, session, prepared, deadline).result(timeout=timeout)
        except FutureTimeoutError as e:
            log.error(f"Error querying Prometheus: no response within {timeout:g}s")
            raise PrometheusQueryError(f"prometheus response not complete within {timeout:g}s") from e
        except PrometheusQueryError as e:
            log.error(f"Error querying Prometheus: {e}")
            raise
        except (requests.RequestException, urllib3.exceptions.HTTPError, OSError) as e:
            log.error(f"Error querying Prometheus: {e}")
            raise PrometheusQueryError(f"prometheus request failed: {e}") from e
        finally:
            pool.shutdown(wait=False)
            if self.session is None:
                session.close()

        try:
            body = json.loads(content)
        except ValueError as e:
            log.error(f"Error querying Prometheus: HTTP {status_code}, non-JSON body")
            raise PrometheusQueryError(f"prometheus returned HTTP {status_code} without JSON body") from e

        if not isinstance(body, dict) or body.get("status") != "success":
            err = body.get("error") if isinstance(body, dict) else None
            log.error(f"Error querying Prometheus: HTTP {status_code}, {err}")
            raise PrometheusQueryError(f"prometheus query failed (HTTP {status_code}): {err}")

        warnings = body.get("warnings") or []
        if warnings:
            log.warning(f"Prometheus warnings: {warnings}")
            raise PrometheusQueryError(f"prometheus returned warnings: {warnings}")

        data = body.get("data")
        if not isinstance(data, dict):
            log.error(f"Error querying Prometheus: malformed data section {data!r}")
            raise PrometheusQueryError(f"prometheus returned malformed data section: {data!r}")
        return QueryResult(result_type=data.get("resultType", ""), result=data.get("result"))
