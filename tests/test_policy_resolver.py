import math
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from kubernetes import client

from reclaim_idle import constants
from reclaim_idle.errors import AnnotationParseError, PriorityOverflowError
from reclaim_idle.model.policy import Policy
from reclaim_idle.policy.resolver import (
    collect_priority_class_policies, parse_policy, policy_from_priority_class,
)
from reclaim_idle.types import INT32_MAX, ResourceType


def test_defaults_when_no_annotations():
    policy = parse_policy({}, 1000)
    assert policy == Policy(
        minimum_preemptable_priority=1001,
        toleration_seconds=0,
        cpu_idle_seconds=0,
        gpu_idle_seconds=0,
        cpu_idle_usage_threshold=0.0,
        gpu_idle_usage_threshold=0.0,
    )


def test_none_annotations_are_defaults():
    assert parse_policy(None, -5).minimum_preemptable_priority == -4


def test_all_annotations_parsed():
    policy = parse_policy({
        constants.ANNOTATION_KEY_MINIMUM_PREEMPTABLE_PRIORITY: "10000",
        constants.ANNOTATION_KEY_TOLERATION_SECONDS: "3600",
        constants.ANNOTATION_KEY_CPU_IDLE_SECONDS: "600",
        constants.ANNOTATION_KEY_GPU_IDLE_SECONDS: "1800",
        constants.ANNOTATION_KEY_CPU_IDLE_USAGE_THRESHOLD: "0.25",
        constants.ANNOTATION_KEY_GPU_IDLE_USAGE_THRESHOLD: "0.05",
    }, 100)
    assert policy.minimum_preemptable_priority == 10000
    assert policy.toleration_seconds == 3600
    assert policy.cpu_idle_seconds == 600
    assert policy.gpu_idle_seconds == 1800
    assert policy.cpu_idle_usage_threshold == 0.25
    assert policy.gpu_idle_usage_threshold == 0.05
    assert policy.idle_seconds(ResourceType.GPU) == 1800
    assert policy.idle_usage_threshold(ResourceType.CPU) == 0.25


def test_negative_toleration_means_forever():
    policy = parse_policy({constants.ANNOTATION_KEY_TOLERATION_SECONDS: "-1"}, 0)
    assert policy.toleration_seconds == -1
    assert policy.tolerates_forever


def test_explicit_minimum_priority_lower_than_own():
    policy = parse_policy({constants.ANNOTATION_KEY_MINIMUM_PREEMPTABLE_PRIORITY: "+5"}, 100)
    assert policy.minimum_preemptable_priority == 5


@pytest.mark.parametrize("key,value", [
    (constants.ANNOTATION_KEY_MINIMUM_PREEMPTABLE_PRIORITY, "abc"),
    (constants.ANNOTATION_KEY_MINIMUM_PREEMPTABLE_PRIORITY, "2147483648"),
    (constants.ANNOTATION_KEY_TOLERATION_SECONDS, "1.5"),
    (constants.ANNOTATION_KEY_CPU_IDLE_SECONDS, " 60"),
    (constants.ANNOTATION_KEY_GPU_IDLE_SECONDS, "1_000"),
    (constants.ANNOTATION_KEY_GPU_IDLE_SECONDS, "9223372036854775808"),
    (constants.ANNOTATION_KEY_CPU_IDLE_USAGE_THRESHOLD, "half"),
    (constants.ANNOTATION_KEY_GPU_IDLE_USAGE_THRESHOLD, ""),
    (constants.ANNOTATION_KEY_CPU_IDLE_USAGE_THRESHOLD, "1e400"),
    (constants.ANNOTATION_KEY_GPU_IDLE_USAGE_THRESHOLD, "-1e309"),
])
def test_malformed_value_fails(key, value):
    with pytest.raises(AnnotationParseError) as exc:
        parse_policy({key: value}, 0)
    assert exc.value.key == key
    assert isinstance(exc.value, ValueError)


def test_first_bad_annotation_aborts():
    with pytest.raises(AnnotationParseError) as exc:
        parse_policy({
            constants.ANNOTATION_KEY_TOLERATION_SECONDS: "x",
            constants.ANNOTATION_KEY_GPU_IDLE_USAGE_THRESHOLD: "y",
        }, 0)
    assert exc.value.key == constants.ANNOTATION_KEY_TOLERATION_SECONDS


def test_exponent_threshold():
    policy = parse_policy({constants.ANNOTATION_KEY_CPU_IDLE_USAGE_THRESHOLD: "1e-3"}, 0)
    assert math.isclose(policy.cpu_idle_usage_threshold, 0.001)


def test_max_priority_default_overflows():
    with pytest.raises(PriorityOverflowError):
        parse_policy({}, INT32_MAX)


def test_max_priority_with_explicit_minimum():
    policy = parse_policy({constants.ANNOTATION_KEY_MINIMUM_PREEMPTABLE_PRIORITY: str(INT32_MAX)}, INT32_MAX)
    assert policy.minimum_preemptable_priority == INT32_MAX


def test_from_v1_priority_class():
    pc = client.V1PriorityClass(
        metadata=client.V1ObjectMeta(
            name="batch-low",
            annotations={constants.ANNOTATION_KEY_GPU_IDLE_SECONDS: "3600"},
        ),
        value=10,
    )
    policy = policy_from_priority_class(pc)
    assert policy.minimum_preemptable_priority == 11
    assert policy.gpu_idle_seconds == 3600


def test_from_priority_class_json():
    pc = {"metadata": {"name": "batch-low"}, "value": 7}
    assert policy_from_priority_class(pc).minimum_preemptable_priority == 8


def test_collect_skips_unannotated_and_invalid():
    def pc(name, value, annotations):
        return SimpleNamespace(metadata=SimpleNamespace(name=name, annotations=annotations), value=value)

    api = MagicMock()
    api.list_priority_class.return_value = SimpleNamespace(items=[
        pc("system-node-critical", 2000001000, None),
        pc("batch", 10, {constants.ANNOTATION_KEY_TOLERATION_SECONDS: "60"}),
        pc("broken", 20, {constants.ANNOTATION_KEY_CPU_IDLE_SECONDS: "soon"}),
    ])
    policies = collect_priority_class_policies(api)
    assert list(policies) == ["batch"]
    assert policies["batch"].toleration_seconds == 60


def test_explicit_infinity_threshold():
    policy = parse_policy({constants.ANNOTATION_KEY_GPU_IDLE_USAGE_THRESHOLD: "+Inf"}, 0)
    assert math.isinf(policy.gpu_idle_usage_threshold)
