"""Loading, storing, matching and running user-defined workflows."""

from __future__ import annotations

import logging
import os
import re
import shutil
import time
from functools import lru_cache

import yaml

from sortkeeper.conditions import evaluate_conditions
from sortkeeper.types import (
    Action,
    ActionType,
    FileEvent,
    Op,
    TriggerType,
    Workflow,
    WorkflowResult,
)

logger = logging.getLogger(__name__)

_WORKFLOW_SUFFIXES = (".yaml", ".yml")


class WorkflowError(Exception):
    """A workflow is invalid, missing, or failed to run."""


def validate_workflow(workflow: Workflow) -> None:
    """Raise WorkflowError unless the workflow has an ID, a name and an action."""
    if not workflow.id:
        raise WorkflowError("workflow ID is required")
    if not workflow.name:
        raise WorkflowError("workflow name is required")
    if not workflow.actions:
        raise WorkflowError("workflow must have at least one action")


def _parse_glob(pattern: str, i: int, in_alternation: bool) -> tuple[str, int]:
    out: list[str] = []
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if in_alternation and char in ",}":
            return "".join(out), i
        if char == "*":
            while i < n and pattern[i] == "*":
                i += 1
            out.append(".*")
        elif char == "?":
            out.append(".")
            i += 1
        elif char == "\\":
            if i + 1 >= n:
                raise ValueError("unexpected end of pattern after escape")
            out.append(re.escape(pattern[i + 1]))
            i += 2
        elif char == "[":
            class_regex, i = _parse_class(pattern, i + 1)
            out.append(class_regex)
        elif char == "{":
            alternatives: list[str] = []
            i += 1
            while True:
                part, i = _parse_glob(pattern, i, True)
                alternatives.append(part)
                if i >= n:
                    raise ValueError("unclosed alternation in pattern")
                if pattern[i] == "}":
                    i += 1
                    break
                i += 1  # skip ','
            out.append("(?:" + "|".join(alternatives) + ")")
        else:
            out.append(re.escape(char))
            i += 1
    if in_alternation:
        raise ValueError("unclosed alternation in pattern")
    return "".join(out), i


def _parse_class(pattern: str, i: int) -> tuple[str, int]:
    n = len(pattern)
    negate = i < n and pattern[i] == "!"
    if negate:
        i += 1
    items: list[str] = []
    while True:
        if i >= n:
            raise ValueError("unclosed character class in pattern")
        char = pattern[i]
        if char == "]":
            i += 1
            break
        if char == "\\":
            if i + 1 >= n:
                raise ValueError("unexpected end of pattern after escape")
            char = pattern[i + 1]
            i += 2
        else:
            i += 1
        if i + 1 < n and pattern[i] == "-" and pattern[i + 1] != "]":
            high = pattern[i + 1]
            i += 2
            if high < char:
                raise ValueError("invalid range in character class")
            items.append(f"{re.escape(char)}-{re.escape(high)}")
        else:
            items.append(re.escape(char))
    if not items:
        raise ValueError("empty character class in pattern")
    return f"[{'^' if negate else ''}{''.join(items)}]", i


@lru_cache(maxsize=256)
def _compile_trigger_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a trigger glob; '*' spans path separators. ValueError if malformed."""
    regex, _ = _parse_glob(pattern, 0, False)
    return re.compile(regex, re.DOTALL)


def _extension(path: str) -> str:
    base = os.path.basename(path)
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def _unique_file_path(file_path: str) -> str:
    ext = _extension(file_path)
    base = file_path[: len(file_path) - len(ext)]
    return base + time.strftime("_%Y%m%d_%H%M%S") + ext


def _type_text(value: object) -> str:
    return str(getattr(value, "value", value))


class WorkflowManager:
    """Holds the workflows stored as YAML files in a directory and runs them."""

    def __init__(self, config_path: str | os.PathLike[str]) -> None:
        self.config_path = os.fspath(config_path)
        self.dry_run = False
        self._workflows: list[Workflow] = []
        self.load_workflows()

    def load_workflows(self) -> None:
        """Reload every *.yaml and *.yml workflow file, in name order."""
        self._workflows = []
        try:
            os.makedirs(self.config_path, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise WorkflowError(f"failed to create config directory: {exc}") from exc
        try:
            with os.scandir(self.config_path) as scan:
                entries = sorted(scan, key=lambda entry: entry.name)
        except OSError as exc:
            raise WorkflowError(f"failed to read config directory: {exc}") from exc

        for entry in entries:
            if entry.is_dir() or not entry.name.endswith(_WORKFLOW_SUFFIXES):
                continue
            path = os.path.join(self.config_path, entry.name)
            try:
                with open(path, "rb") as handle:
                    raw = handle.read()
            except OSError as exc:
                raise WorkflowError(f"failed to read workflow file {path}: {exc}") from exc
            try:
                workflow = Workflow.from_dict(yaml.safe_load(raw))
            except (yaml.YAMLError, ValueError) as exc:
                raise WorkflowError(f"failed to parse workflow file {path}: {exc}") from exc
            try:
                validate_workflow(workflow)
            except WorkflowError as exc:
                raise WorkflowError(f"invalid workflow in {path}: {exc}") from exc
            self._workflows.append(workflow)

    def workflows(self) -> list[Workflow]:
        """The loaded workflows, in load order."""
        return list(self._workflows)

    def process_event(self, event: FileEvent) -> bool:
        """Run every enabled workflow the event triggers; True if any ran.

        Raises WorkflowError when a triggered workflow fails; the event was
        still handled by the workflow system in that case.
        """
        file_name = os.path.basename(event.name)
        if file_name.startswith(".") or file_name.endswith("~"):
            return False
        try:
            stat_result = os.stat(event.name)
        except OSError:
            return False

        if Op.CREATE in event.op:
            trigger_type = TriggerType.FILE_CREATED
        elif Op.WRITE in event.op:
            trigger_type = TriggerType.FILE_MODIFIED
        else:
            return False

        processed = False
        for workflow in list(self._workflows):
            if not workflow.enabled:
                continue
            if workflow.trigger.type != trigger_type and workflow.trigger.type != TriggerType.FILE_PATTERN_MATCH:
                continue
            if workflow.trigger.pattern:
                try:
                    matcher = _compile_trigger_pattern(workflow.trigger.pattern)
                except ValueError as exc:
                    logger.error(
                        "Error compiling workflow pattern '%s' for %s: %s",
                        workflow.trigger.pattern,
                        workflow.id,
                        exc,
                    )
                    continue
                if matcher.fullmatch(event.name) is None:
                    continue
            if not evaluate_conditions(workflow.conditions, event.name, stat_result):
                continue

            result = self._run(workflow, event.name)
            processed = True
            logger.info("Workflow %s (%s) execution: %s", workflow.name, workflow.id, result.success)
            if not result.success and result.error is not None:
                raise WorkflowError(
                    f"workflow {workflow.id} failed for {event.name}: {result.error}"
                ) from result.error
        return processed

    def add_workflow(self, workflow: Workflow) -> None:
        """Validate, add and save a workflow with a new ID."""
        validate_workflow(workflow)
        if any(existing.id == workflow.id for existing in self._workflows):
            raise WorkflowError(f"workflow with ID {workflow.id} already exists")
        self._workflows.append(workflow)
        self._save(workflow)

    def update_workflow(self, workflow: Workflow) -> None:
        """Validate and replace the workflow with the same ID, then save it."""
        validate_workflow(workflow)
        for index, existing in enumerate(self._workflows):
            if existing.id == workflow.id:
                self._workflows[index] = workflow
                break
        else:
            raise WorkflowError(f"workflow with ID {workflow.id} not found")
        self._save(workflow)

    def delete_workflow(self, workflow_id: str) -> None:
        """Forget a workflow and delete its file."""
        for index, workflow in enumerate(self._workflows):
            if workflow.id == workflow_id:
                del self._workflows[index]
                path = os.path.join(self.config_path, workflow_id + ".yaml")
                try:
                    os.remove(path)
                except OSError as exc:
                    raise WorkflowError(f"failed to delete workflow file: {exc}") from exc
                return
        raise WorkflowError(f"workflow with ID {workflow_id} not found")

    def execute_workflow(self, workflow_id: str, file_path: str) -> WorkflowResult:
        """Run a workflow on a file, skipping the trigger but checking conditions."""
        workflow = next((w for w in self._workflows if w.id == workflow_id), None)
        if workflow is None:
            raise WorkflowError(f"workflow with ID {workflow_id} not found")
        try:
            stat_result = os.stat(file_path)
        except OSError as exc:
            raise WorkflowError(f"file not found: {exc}") from exc
        if not evaluate_conditions(workflow.conditions, file_path, stat_result):
            raise WorkflowError("file does not meet workflow conditions")
        return self._run(workflow, file_path)

    def _save(self, workflow: Workflow) -> None:
        try:
            text = yaml.safe_dump(workflow.to_dict(), sort_keys=False)
        except yaml.YAMLError as exc:
            raise WorkflowError(f"failed to marshal workflow: {exc}") from exc
        path = os.path.join(self.config_path, workflow.id + ".yaml")
        try:
            with open(path, "w", encoding="utf-8") as handle:
                handle.write(text)
        except OSError as exc:
            raise WorkflowError(f"failed to write workflow file: {exc}") from exc

    def _run(self, workflow: Workflow, file_path: str) -> WorkflowResult:
        result = WorkflowResult(
            workflow_id=workflow.id,
            workflow_name=workflow.name,
            success=True,
            file_path=file_path,
        )
        for action in workflow.actions:
            try:
                self._execute_action(action, file_path)
            except (OSError, WorkflowError) as exc:
                result.success = False
                result.error = exc
                result.message = f"Failed to execute action: {exc}"
                return result
        result.message = "All actions completed successfully"
        return result

    def _execute_action(self, action: Action, file_path: str) -> None:
        if action.type == ActionType.MOVE:
            self._move_or_copy(action, file_path, copy=False)
        elif action.type == ActionType.COPY:
            self._move_or_copy(action, file_path, copy=True)
        elif action.type == ActionType.RENAME:
            self._rename(action, file_path)
        elif action.type == ActionType.TAG:
            prefix = "[DRY RUN] Would add" if self.dry_run else "Added"
            logger.info("%s tag '%s' to file %s", prefix, action.target, file_path)
        elif action.type == ActionType.DELETE:
            if self.dry_run:
                logger.info("[DRY RUN] Would delete file %s", file_path)
                return
            os.remove(file_path)
        elif action.type == ActionType.EXECUTE:
            prefix = "[DRY RUN] Would execute" if self.dry_run else "Would execute"
            logger.info("%s command: %s (with file: %s)", prefix, action.target, file_path)
        else:
            raise WorkflowError(f"unsupported action type: {_type_text(action.type)}")

    def _prepare_target(self, action: Action, target_path: str, verb: str, file_path: str) -> str | None:
        """Resolve collisions at target_path; None means dry run, nothing to do."""
        overwrite = action.options.get("overwrite") == "true"
        exists = os.path.exists(target_path)
        if exists:
            if overwrite:
                if not self.dry_run:
                    try:
                        os.remove(target_path)
                    except OSError as exc:
                        raise WorkflowError(f"failed to remove existing file: {exc}") from exc
            else:
                target_path = _unique_file_path(target_path)
        if self.dry_run:
            if exists and overwrite:
                logger.info("[DRY RUN] Would overwrite existing file: %s", target_path)
            logger.info("[DRY RUN] Would %s file from %s to %s", verb, file_path, target_path)
            return None
        return target_path

    def _move_or_copy(self, action: Action, file_path: str, copy: bool) -> None:
        if action.options.get("createTargetDir") == "true":
            try:
                os.makedirs(action.target, mode=0o755, exist_ok=True)
            except OSError as exc:
                raise WorkflowError(f"failed to create target directory: {exc}") from exc
        target = os.path.join(action.target, os.path.basename(file_path))
        verb = "copy" if copy else "move"
        final = self._prepare_target(action, target, verb, file_path)
        if final is None:
            return
        try:
            if copy:
                shutil.copyfile(file_path, final)
            else:
                os.replace(file_path, final)
        except OSError as exc:
            detail = "copy file contents" if copy else "move file"
            raise WorkflowError(f"failed to {detail}: {exc}") from exc

    def _rename(self, action: Action, file_path: str) -> None:
        target = os.path.join(os.path.dirname(file_path), action.target)
        final = self._prepare_target(action, target, "rename", file_path)
        if final is None:
            return
        try:
            os.replace(file_path, final)
        except OSError as exc:
            raise WorkflowError(f"failed to rename file: {exc}") from exc