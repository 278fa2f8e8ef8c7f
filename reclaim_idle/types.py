# reclaim_idle/types.py
from __future__ import annotations

from enum import Enum
from typing import NewType


# Numbers
Priority = NewType("Priority", int)  # int32, as in PriorityClass.value
Seconds = NewType("Seconds", int)    # int64

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class ResourceType(str, Enum):
    """Resource whose utilization is measured for idleness."""
    CPU = "cpu"
    GPU = "gpu"
