"""Evaluation of workflow conditions against a file."""

from __future__ import annotations

import os
import re
import time
from typing import Iterable

from sortkeeper.types import Condition, ConditionType, OperatorType

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1

_SIZE_UNITS = {"KB": 1024, "MB": 1024 * 1024, "GB": 1024 * 1024 * 1024}
_AGE_UNITS = {"minutes": 60.0, "hours": 3600.0, "days": 86400.0}


def _parse_int(text: str) -> int | None:
    if not _INT_RE.fullmatch(text):
        return None
    number = int(text)
    if not _INT64_MIN <= number <= _INT64_MAX:
        return None
    return number


def _parse_float(text: str) -> float | None:
    if not text or text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _base(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip(os.sep)
    if not stripped:
        return os.sep
    return os.path.basename(stripped)


def _extension(path: str) -> str:
    for index in range(len(path) - 1, -1, -1):
        char = path[index]
        if char == os.sep:
            break
        if char == ".":
            return path[index:]
    return ""


def _compare_numbers(operator: OperatorType | str, actual: float, target: float) -> bool:
    if operator == OperatorType.EQUALS:
        return actual == target
    if operator == OperatorType.NOT_EQUALS:
        return actual != target
    if operator == OperatorType.GREATER_THAN:
        return actual > target
    if operator == OperatorType.LESS_THAN:
        return actual < target
    return False


def evaluate_conditions(
    conditions: Iterable[Condition], file_path: str, stat_result: os.stat_result
) -> bool:
    """True when every condition holds; an empty list always holds."""
    return all(evaluate_condition(c, file_path, stat_result) for c in conditions)


def evaluate_condition(condition: Condition, file_path: str, stat_result: os.stat_result) -> bool:
    """Evaluate one condition; unknown condition types never hold."""
    if condition.type == ConditionType.FILE_SIZE:
        return evaluate_file_size(condition, stat_result)
    if condition.type == ConditionType.FILE_NAME:
        return evaluate_file_name(condition, file_path)
    if condition.type == ConditionType.FILE_TYPE:
        return evaluate_file_type(condition, file_path)
    if condition.type == ConditionType.FILE_AGE:
        return evaluate_file_age(condition, stat_result)
    return False


def evaluate_file_size(condition: Condition, stat_result: os.stat_result) -> bool:
    """Compare the file size with the condition value, scaled by KB, MB or GB."""
    target = _parse_int(condition.value)
    if target is None:
        return False
    target *= _SIZE_UNITS.get(condition.value_unit.upper(), 1)
    return _compare_numbers(condition.operator, stat_result.st_size, target)


def evaluate_file_name(condition: Condition, file_path: str) -> bool:
    """Compare the base name of the file with the condition value."""
    name = _base(file_path)
    operator = condition.operator
    value = condition.value
    if operator == OperatorType.EQUALS:
        return name == value
    if operator == OperatorType.NOT_EQUALS:
        return name != value
    if operator == OperatorType.CONTAINS:
        return value in name
    if operator == OperatorType.STARTS_WITH:
        return name.startswith(value)
    if operator == OperatorType.ENDS_WITH:
        return name.endswith(value)
    if operator == OperatorType.MATCHES_REGEX:
        try:
            return re.search(value, name) is not None
        except re.error:
            return False
    return False


def evaluate_file_type(condition: Condition, file_path: str) -> bool:
    """Compare the lower-case extension, without its dot, with the condition value."""
    ext = _extension(file_path).lower()
    if ext.startswith("."):
        ext = ext[1:]
    operator = condition.operator
    if operator == OperatorType.EQUALS:
        return ext == condition.value
    if operator == OperatorType.NOT_EQUALS:
        return ext != condition.value
    if operator == OperatorType.CONTAINS:
        return condition.value in ext
    return False


def evaluate_file_age(condition: Condition, stat_result: os.stat_result) -> bool:
    """Compare seconds since last modification with the value in seconds, minutes, hours or days."""
    age = time.time() - stat_result.st_mtime
    target = _parse_float(condition.value)
    if target is None:
        return False
    target *= _AGE_UNITS.get(condition.value_unit.lower(), 1.0)
    return _compare_numbers(condition.operator, age, target)