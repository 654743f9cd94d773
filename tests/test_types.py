import json
import os
from datetime import datetime, timezone

import pytest
import yaml

from sortkeeper.types import (
    Action,
    ActionType,
    Condition,
    ConditionType,
    Config,
    FileEvent,
    FileInfo,
    Op,
    OperatorType,
    OrganizeResult,
    Pattern,
    Trigger,
    TriggerType,
    Workflow,
)


def _sample_workflow():
    return Workflow(
        id="test-workflow",
        name="Test Workflow",
        description="Test workflow for integration testing",
        enabled=True,
        trigger=Trigger(type=TriggerType.FILE_CREATED, pattern="*.log"),
        conditions=[
            Condition(
                type=ConditionType.FILE_SIZE,
                field="size",
                operator=OperatorType.GREATER_THAN,
                value="5000",
            )
        ],
        actions=[
            Action(
                type=ActionType.MOVE,
                target="/tmp/dest",
                options={"createTargetDir": "true", "overwrite": "false"},
            )
        ],
        priority=10,
    )


def test_file_info_name_is_basename():
    info = FileInfo(path=os.path.join("docs", "report.pdf"))
    assert info.name() == "report.pdf"
    assert info.filter_value() == info.name()


def test_file_info_str_without_tags():
    info = FileInfo(path="/a/b.txt", content_type="text/plain", size=42)
    assert str(info).splitlines() == [
        "File: /a/b.txt",
        "Type: text/plain",
        "Size: 42 bytes",
    ]


def test_file_info_str_with_tags():
    info = FileInfo(path="/a/b.txt", content_type="text/plain", size=3, tags=["x", "y"])
    lines = str(info).splitlines()
    assert lines[-1] == "Tags: " + ", ".join(["x", "y"])
    assert str(info).endswith("\n")


def test_file_info_json_round_trip_fields():
    moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    info = FileInfo(
        path="/a/b.jpg",
        content_type="image/jpeg",
        size=7,
        mod_time=moment,
        tags=["holiday"],
        metadata={"camera": "generic"},
    )
    data = json.loads(info.to_json())
    assert data["path"] == info.path
    assert data["type"] == info.content_type
    assert data["size"] == info.size
    assert data["tags"] == info.tags
    assert data["metadata"] == info.metadata
    assert datetime.fromisoformat(data["mod_time"].replace("Z", "+00:00")) == moment


def test_file_info_json_omits_empty_collections():
    data = json.loads(FileInfo(path="/x").to_json())
    assert "tags" not in data
    assert "metadata" not in data
    assert data["mod_time"] == "0001-01-01T00:00:00Z"


def test_is_symlink(tmp_path):
    target = tmp_path / "real.txt"
    target.write_text("data")
    link = tmp_path / "link.txt"
    link.symlink_to(target)
    assert FileInfo(path=str(link)).is_symlink() is True
    assert FileInfo(path=str(target)).is_symlink() is False
    assert FileInfo(path=str(tmp_path / "missing")).is_symlink() is False


def test_workflow_dict_round_trip():
    wf = _sample_workflow()
    assert Workflow.from_dict(wf.to_dict()) == wf


def test_workflow_yaml_round_trip():
    wf = _sample_workflow()
    text = yaml.safe_dump(wf.to_dict())
    assert Workflow.from_dict(yaml.safe_load(text)) == wf


def test_workflow_from_yaml_document():
    doc = yaml.safe_load(
        """
id: "test-workflow"
name: "Test Workflow"
enabled: true
priority: 10
trigger:
  type: "file_created"
  pattern: "*.log"
actions:
  - type: "move"
    target: "/tmp/out"
    options:
      createTargetDir: "true"
"""
    )
    wf = Workflow.from_dict(doc)
    assert wf.trigger.type is TriggerType.FILE_CREATED
    assert wf.trigger.pattern == "*.log"
    assert wf.actions[0].type is ActionType.MOVE
    assert wf.actions[0].options == {"createTargetDir": "true"}
    assert wf.priority == 10
    assert wf.conditions == []


def test_unknown_action_type_kept_as_text():
    wf = Workflow.from_dict({"id": "a", "name": "b", "actions": [{"type": "teleport", "target": "x"}]})
    assert wf.actions[0].type == "teleport"
    assert wf.to_dict()["actions"][0]["type"] == "teleport"


def test_to_dict_omits_empty_optional_fields():
    wf = Workflow(id="a", name="b", actions=[Action(type=ActionType.DELETE)])
    data = wf.to_dict()
    assert "description" not in data
    assert "conditions" not in data
    assert "priority" not in data
    assert "options" not in data["actions"][0]
    assert data["trigger"] == {"type": ""}


def test_numeric_condition_value_becomes_text():
    cond = Condition.from_dict({"type": "file_size", "operator": "equals", "value": 5000})
    assert cond.value == "5000"
    assert cond.operator is OperatorType.EQUALS


def test_bad_priority_raises():
    with pytest.raises(ValueError):
        Workflow.from_dict({"id": "a", "priority": "high"})


def test_bad_enabled_raises():
    with pytest.raises(ValueError):
        Workflow.from_dict({"id": "a", "enabled": "maybe"})


def test_empty_document_gives_blank_workflow():
    assert Workflow.from_dict(None) == Workflow()


def test_op_flags_combine():
    event = FileEvent(name="/x", op=Op.CREATE | Op.WRITE)
    assert Op.CREATE in event.op
    assert Op.WRITE in event.op
    assert Op.REMOVE not in event.op


def test_config_defaults_are_independent():
    first = Config()
    second = Config()
    first.patterns.append(Pattern(match="*.txt", target="documents"))
    assert second.patterns == []
    assert first.patterns[0].target == "documents"


def test_organize_result_defaults():
    result = OrganizeResult(source_path="/a", destination_path="/b")
    assert result.moved is False
    assert result.error is None