import os
import time

import pytest

from sortkeeper.conditions import (
    evaluate_condition,
    evaluate_conditions,
    evaluate_file_age,
    evaluate_file_name,
    evaluate_file_size,
    evaluate_file_type,
)
from sortkeeper.types import Condition, ConditionType, OperatorType


@pytest.fixture
def kb_file(tmp_path):
    path = tmp_path / "test-file.txt"
    path.write_bytes(bytes(1024))
    return str(path)


@pytest.mark.parametrize(
    "operator, value, unit, expected",
    [
        (OperatorType.EQUALS, "1", "KB", True),
        (OperatorType.LESS_THAN, "2", "KB", True),
        (OperatorType.GREATER_THAN, "2", "KB", False),
        (OperatorType.EQUALS, "1024", "", True),
        (OperatorType.NOT_EQUALS, "1024", "", False),
        (OperatorType.LESS_THAN, "1", "mb", True),
        (OperatorType.CONTAINS, "1", "KB", False),
    ],
)
def test_file_size(kb_file, operator, value, unit, expected):
    condition = Condition(ConditionType.FILE_SIZE, "size", operator, value, unit)
    assert evaluate_file_size(condition, os.stat(kb_file)) is expected


@pytest.mark.parametrize("value", ["abc", "", " 1", "1.5", "1_0", "99999999999999999999"])
def test_file_size_rejects_bad_numbers(kb_file, value):
    condition = Condition(ConditionType.FILE_SIZE, "size", OperatorType.NOT_EQUALS, value)
    assert evaluate_file_size(condition, os.stat(kb_file)) is False


@pytest.mark.parametrize(
    "operator, value, expected",
    [
        (OperatorType.EQUALS, "test-file.txt", True),
        (OperatorType.CONTAINS, "file", True),
        (OperatorType.STARTS_WITH, "test", True),
        (OperatorType.ENDS_WITH, ".txt", True),
        (OperatorType.NOT_EQUALS, "other-file.txt", True),
        (OperatorType.EQUALS, "other-file.txt", False),
        (OperatorType.MATCHES_REGEX, r"^test-\w+\.txt$", True),
        (OperatorType.MATCHES_REGEX, r"^file", False),
        (OperatorType.MATCHES_REGEX, r"(", False),
        (OperatorType.GREATER_THAN, "a", False),
    ],
)
def test_file_name(operator, value, expected):
    condition = Condition(ConditionType.FILE_NAME, "name", operator, value)
    assert evaluate_file_name(condition, "/path/to/test-file.txt") is expected


def test_file_name_accepts_raw_operator_text():
    condition = Condition("file_name", "name", "contains", "file")
    assert evaluate_file_name(condition, "/path/to/test-file.txt") is True


@pytest.mark.parametrize(
    "path, operator, value, expected",
    [
        ("/docs/report.PDF", OperatorType.EQUALS, "pdf", True),
        ("/docs/report.pdf", OperatorType.NOT_EQUALS, "pdf", False),
        ("/docs/archive.tar.gz", OperatorType.EQUALS, "gz", True),
        ("/docs/image.jpeg", OperatorType.CONTAINS, "jp", True),
        ("/docs/noext", OperatorType.EQUALS, "", True),
        ("/some.dir/noext", OperatorType.EQUALS, "", True),
        ("/docs/report.pdf", OperatorType.STARTS_WITH, "p", False),
    ],
)
def test_file_type(path, operator, value, expected):
    condition = Condition(ConditionType.FILE_TYPE, "type", operator, value)
    assert evaluate_file_type(condition, path) is expected


@pytest.fixture
def old_file(tmp_path):
    path = tmp_path / "old.txt"
    path.write_text("old content")
    week_ago = time.time() - 7 * 86400
    os.utime(path, (week_ago, week_ago))
    return str(path)


@pytest.mark.parametrize(
    "operator, value, unit, expected",
    [
        (OperatorType.GREATER_THAN, "1", "days", True),
        (OperatorType.LESS_THAN, "1", "days", False),
        (OperatorType.GREATER_THAN, "100", "hours", True),
        (OperatorType.LESS_THAN, "20000", "Minutes", True),
        (OperatorType.GREATER_THAN, "3600", "", True),
        (OperatorType.EQUALS, "1", "days", False),
        (OperatorType.NOT_EQUALS, "1", "days", True),
        (OperatorType.GREATER_THAN, "soon", "days", False),
    ],
)
def test_file_age(old_file, operator, value, unit, expected):
    condition = Condition(ConditionType.FILE_AGE, "age", operator, value, unit)
    assert evaluate_file_age(condition, os.stat(old_file)) is expected


def test_evaluate_conditions_all_must_hold(kb_file):
    info = os.stat(kb_file)
    size = Condition(ConditionType.FILE_SIZE, "size", OperatorType.EQUALS, "1", "KB")
    name_ok = Condition(ConditionType.FILE_NAME, "name", OperatorType.ENDS_WITH, ".txt")
    name_bad = Condition(ConditionType.FILE_NAME, "name", OperatorType.ENDS_WITH, ".pdf")
    assert evaluate_conditions([size, name_ok], kb_file, info) is True
    assert evaluate_conditions([size, name_bad], kb_file, info) is False
    assert evaluate_conditions([], kb_file, info) is True


def test_custom_and_unknown_conditions_never_hold(kb_file):
    info = os.stat(kb_file)
    custom = Condition(ConditionType.CUSTOM, "x", OperatorType.EQUALS, "y")
    unknown = Condition("mystery", "x", OperatorType.EQUALS, "y")
    assert evaluate_condition(custom, kb_file, info) is False
    assert evaluate_condition(unknown, kb_file, info) is False


def test_evaluate_condition_dispatches_by_type(kb_file):
    info = os.stat(kb_file)
    type_cond = Condition(ConditionType.FILE_TYPE, "type", OperatorType.EQUALS, "txt")
    assert evaluate_condition(type_cond, kb_file, info) is True