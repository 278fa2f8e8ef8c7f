# reclaim_idle/metrics/scalar.py
from __future__ import annotations

import math

from ..errors import ResultTypeError
from ..model.usage import QueryResult, ResourceUsageSample


def extract_scalar(result: QueryResult) -> ResourceUsageSample:
    """Scalar result `[<unix_time>, "<value>"]` as a sample; NaN becomes 0."""
    if result.result_type != "scalar":
        raise ResultTypeError(f"expected scalar result, got {result.result_type or 'nothing'}")
    pair = result.result
    if not isinstance(pair, (list, tuple)) or len(pair) != 2:
        raise ResultTypeError(f"malformed scalar result: {pair!r}")
    try:
        timestamp = float(pair[0])
        value = float(pair[1])
    except (TypeError, ValueError) as e:
        raise ResultTypeError(f"malformed scalar result: {pair!r}") from e

    if math.isnan(value):
        value = 0.0
    return ResourceUsageSample(value=value, timestamp=timestamp)
