"""Core data types shared by the organizer, the watcher and the workflow manager."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum, IntFlag
from typing import Any, Mapping, TypeVar

_ZERO_TIME = "0001-01-01T00:00:00Z"


class Mode(IntEnum):
    """Interaction mode of the interactive browser."""

    NORMAL = 0
    SETUP = 1
    COMMAND = 2
    VISUAL = 3


class ViewMode(IntEnum):
    """Layout of the file list."""

    LIST = 0
    TREE = 1


@dataclass
class Pattern:
    """A glob rule that sends matching files to a target directory."""

    match: str
    target: str


@dataclass
class Config:
    """Settings that drive organizing and watching."""

    patterns: list[Pattern] = field(default_factory=list)
    watch_directories: list[str] = field(default_factory=list)
    default_directory: str = ""
    dry_run: bool = False
    create_dirs: bool = False
    backup: bool = False
    collision: str = ""
    workflows: list["Workflow"] = field(default_factory=list)


def _format_time(moment: datetime | None) -> str:
    if moment is None:
        return _ZERO_TIME
    text = moment.isoformat()
    if moment.tzinfo is not None and moment.utcoffset() == timezone.utc.utcoffset(None):
        text = text.replace("+00:00", "Z")
    return text


@dataclass
class FileInfo:
    """Analyzed information about a single file."""

    path: str
    content_type: str = ""
    size: int = 0
    mod_time: datetime | None = None
    tags: list[str] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)

    def name(self) -> str:
        """Base name of the file."""
        return os.path.basename(self.path)

    def filter_value(self) -> str:
        """Text used when filtering lists of files."""
        return self.name()

    def to_json(self) -> str:
        """Compact JSON representation."""
        data: dict[str, Any] = {
            "path": self.path,
            "type": self.content_type,
            "size": self.size,
            "mod_time": _format_time(self.mod_time),
        }
        if self.tags:
            data["tags"] = list(self.tags)
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return json.dumps(data, separators=(",", ":"))

    def __str__(self) -> str:
        lines = [
            f"File: {self.path}\n",
            f"Type: {self.content_type}\n",
            f"Size: {self.size} bytes\n",
        ]
        if self.tags:
            lines.append(f"Tags: {', '.join(self.tags)}\n")
        return "".join(lines)

    def is_symlink(self) -> bool:
        """Whether the path is a symbolic link; False if it cannot be inspected."""
        return os.path.islink(self.path)


@dataclass
class FileEntry:
    """A file or directory shown in a listing."""

    name: str
    path: str
    content_type: str = ""
    size: int = 0
    tags: list[str] = field(default_factory=list)
    is_dir: bool = False


@dataclass
class OrganizeResult:
    """Outcome of organizing one file."""

    source_path: str
    destination_path: str
    moved: bool = False
    error: Exception | None = None


class TriggerType(str, Enum):
    FILE_CREATED = "file_created"
    FILE_MODIFIED = "file_modified"
    FILE_PATTERN_MATCH = "file_pattern_match"
    MANUAL = "manual"
    SCHEDULED = "scheduled"


class ActionType(str, Enum):
    MOVE = "move"
    COPY = "copy"
    RENAME = "rename"
    TAG = "tag"
    DELETE = "delete"
    EXECUTE = "execute"


class ConditionType(str, Enum):
    FILE_SIZE = "file_size"
    FILE_TYPE = "file_type"
    FILE_NAME = "file_name"
    FILE_AGE = "file_age"
    CUSTOM = "custom"


class OperatorType(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    MATCHES_REGEX = "matches_regex"


_E = TypeVar("_E", bound=Enum)


def _coerce(enum_cls: type[_E], value: Any) -> _E | str:
    """Turn a raw value into an enum member, keeping unknown text as is."""
    if isinstance(value, enum_cls):
        return value
    text = _text_field(value)
    try:
        return enum_cls(text)
    except ValueError:
        return text


def _text_field(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


def _require_list(data: Any, what: str) -> list[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"{what} must be a list, got {type(data).__name__}")
    return data


@dataclass
class Condition:
    """A single test a file must pass for a workflow to run."""

    type: ConditionType | str
    field: str = ""
    operator: OperatorType | str = ""
    value: str = ""
    value_unit: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": _text_field(self.type),
            "field": self.field,
            "operator": _text_field(self.operator),
            "value": self.value,
        }
        if self.value_unit:
            data["value_unit"] = self.value_unit
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Condition":
        data = _require_mapping(data, "condition")
        return cls(
            type=_coerce(ConditionType, data.get("type")),
            field=_text_field(data.get("field")),
            operator=_coerce(OperatorType, data.get("operator")),
            value=_text_field(data.get("value")),
            value_unit=_text_field(data.get("value_unit")),
        )


@dataclass
class Action:
    """A single operation performed by a workflow."""

    type: ActionType | str
    target: str = ""
    options: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": _text_field(self.type), "target": self.target}
        if self.options:
            data["options"] = dict(self.options)
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Action":
        data = _require_mapping(data, "action")
        options = _require_mapping(data.get("options"), "action options")
        return cls(
            type=_coerce(ActionType, data.get("type")),
            target=_text_field(data.get("target")),
            options={str(k): _text_field(v) for k, v in options.items()},
        )


@dataclass
class Trigger:
    """What causes a workflow to run."""

    type: TriggerType | str = ""
    pattern: str = ""
    schedule: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": _text_field(self.type)}
        if self.pattern:
            data["pattern"] = self.pattern
        if self.schedule:
            data["schedule"] = self.schedule
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Trigger":
        data = _require_mapping(data, "trigger")
        return cls(
            type=_coerce(TriggerType, data.get("type")),
            pattern=_text_field(data.get("pattern")),
            schedule=_text_field(data.get("schedule")),
        )


@dataclass
class Workflow:
    """A trigger, optional conditions and the actions to perform."""

    id: str = ""
    name: str = ""
    description: str = ""
    enabled: bool = False
    trigger: Trigger = field(default_factory=Trigger)
    conditions: list[Condition] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)
    priority: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping in the workflow file layout."""
        data: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.description:
            data["description"] = self.description
        data["enabled"] = self.enabled
        data["trigger"] = self.trigger.to_dict()
        if self.conditions:
            data["conditions"] = [c.to_dict() for c in self.conditions]
        data["actions"] = [a.to_dict() for a in self.actions]
        if self.priority:
            data["priority"] = self.priority
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Workflow":
        """Build a workflow from a parsed workflow file; raises ValueError on bad types."""
        data = _require_mapping(data, "workflow")
        enabled = data.get("enabled", False)
        if enabled is None:
            enabled = False
        if not isinstance(enabled, bool):
            raise ValueError(f"workflow 'enabled' must be a boolean, got {enabled!r}")
        priority = data.get("priority", 0)
        if priority is None:
            priority = 0
        if isinstance(priority, bool) or not isinstance(priority, int):
            try:
                priority = int(str(priority))
            except ValueError as exc:
                raise ValueError(f"workflow 'priority' must be an integer, got {priority!r}") from exc
        return cls(
            id=_text_field(data.get("id")),
            name=_text_field(data.get("name")),
            description=_text_field(data.get("description")),
            enabled=enabled,
            trigger=Trigger.from_dict(data.get("trigger")),
            conditions=[Condition.from_dict(c) for c in _require_list(data.get("conditions"), "conditions")],
            actions=[Action.from_dict(a) for a in _require_list(data.get("actions"), "actions")],
            priority=priority,
        )


@dataclass
class WorkflowResult:
    """Outcome of running a workflow against one file."""

    workflow_id: str
    workflow_name: str
    success: bool
    file_path: str = ""
    message: str = ""
    error: Exception | None = None


class Op(IntFlag):
    """Kinds of file-system change."""

    CREATE = 1
    WRITE = 2
    REMOVE = 4
    RENAME = 8
    CHMOD = 16


@dataclass(frozen=True)
class FileEvent:
    """A file-system change reported for a path."""

    name: str
    op: Op