"""Step conditions - decide whether a sequential workflow continues."""

import math
from collections.abc import Mapping, Sequence

from .models import StepResult

RESULT_PREFIX = "result."


def _lookup(value: object, key: str) -> object:
    if isinstance(value, Mapping):
        return value.get(key)
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        try:
            return value[int(key)]
        except (ValueError, IndexError):
            return None
    return None


def _is_set(value: object) -> bool:
    # Only None, False, zero, NaN and "" count as unset; empty containers are set
    if value is None or isinstance(value, str):
        return bool(value)
    if isinstance(value, (bool, int)):
        return value != 0
    if isinstance(value, float):
        return value != 0 and not math.isnan(value)
    return True


def evaluate_condition(condition: str, step_result: StepResult) -> bool:
    """Evaluate a step condition against that step's own result.

    Supported forms:
        ``success``            the step succeeded
        ``failure``            the step failed
        ``result.<a.b.c>``     whether the value at that path in the step
                               result is set; missing segments are unset

    Mapping keys and sequence indices are followed; object attributes are not.
    Any other condition evaluates to True.
    """
    if condition == "success":
        return step_result.success

    if condition == "failure":
        return not step_result.success

    if condition.startswith(RESULT_PREFIX):
        value: object = step_result.result
        for key in condition[len(RESULT_PREFIX):].split("."):
            if value is None:
                break
            value = _lookup(value, key)
        return _is_set(value)

    return True
