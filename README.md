# sortkeeper

sortkeeper is a library for keeping directories tidy. It loads file
workflows written in YAML, checks files against size, name, type and age
conditions, runs move/copy/rename/delete actions on them, and watches
directories for files that are created or written.

It is a library only: it installs no command.

## Modules

- `sortkeeper.types` – the shared data types: `Workflow`, `Trigger`,
  `Condition`, `Action`, `WorkflowResult`, the enums `TriggerType`,
  `ActionType`, `ConditionType`, `OperatorType`, the event types `Op`
  (a flag: `CREATE`, `WRITE`, `REMOVE`, `RENAME`, `CHMOD`) and `FileEvent`,
  plus `FileInfo`, `FileEntry`, `Pattern`, `Config`, `OrganizeResult`,
  `Mode` and `ViewMode`.
- `sortkeeper.conditions` – `evaluate_conditions`, `evaluate_condition` and
  one evaluator per condition type.
- `sortkeeper.workflow` – `WorkflowManager`, `validate_workflow` and
  `WorkflowError`.
- `sortkeeper.watcher` – `Watcher`, `FileModification` and `WatcherError`.
- `sortkeeper.helpers` – `create_files_with_content`,
  `create_files_with_default` and `strip_ansi`.

## Workflows

A workflow file, for example `logs.yaml`:

```yaml
id: "archive-logs"
name: "Archive logs"
enabled: true
trigger:
  type: "file_created"
  pattern: "*.log"
conditions:
  - type: "file_size"
    field: "size"
    operator: "greater_than"
    value: "1"
    value_unit: "KB"
actions:
  - type: "move"
    target: "/home/me/logs"
    options:
      createTargetDir: "true"
      overwrite: "false"
```

`WorkflowManager(path)` creates the directory if needed and loads every
`*.yaml` and `*.yml` file in it, in name order. A file that cannot be read,
parsed, or that lacks an `id`, a `name` or at least one action raises
`WorkflowError`.

```python
from sortkeeper.types import FileEvent, Op
from sortkeeper.workflow import WorkflowManager

manager = WorkflowManager("/home/me/.config/sortkeeper/workflows")

# Run one workflow by hand: the trigger is skipped, conditions still apply.
result = manager.execute_workflow("archive-logs", "/home/me/Downloads/app.log")
print(result.success, result.message)

# Or let the manager pick every enabled workflow the event triggers.
handled = manager.process_event(FileEvent("/home/me/Downloads/app.log", Op.CREATE))
```

How events are matched:

- Hidden files (name starting with `.`) and backup files (name ending in
  `~`) are ignored, as are paths that no longer exist.
- `Op.CREATE` matches `file_created` triggers, `Op.WRITE` matches
  `file_modified` triggers; `file_pattern_match` triggers match either.
- A trigger `pattern` is a glob matched against the whole path. `*` also
  crosses directory separators, so `*.log` matches `/any/dir/app.log`.
  `?`, `[a-z]`, `[!x]`, `{a,b}` and `\` escapes are supported; a malformed
  pattern is logged and its workflow skipped.
- `process_event` returns `True` when at least one workflow ran and raises
  `WorkflowError` when a triggered workflow fails.

Actions:

- `move` / `copy` put the file inside `target`; `createTargetDir: "true"`
  creates the directory first. `rename` gives the file the name in `target`
  within its own directory.
- If the destination exists, `overwrite: "true"` replaces it; otherwise a
  timestamp such as `_20240131_142500` is added before the extension.
- `delete` removes the file. `tag` and `execute` only log what they would do.
- Setting `manager.dry_run = True` makes every action log what it would do
  without touching the disk.

`add_workflow`, `update_workflow` and `delete_workflow` change the loaded set
and write or remove `<id>.yaml` in the workflow directory; `workflows()`
returns the loaded workflows. `Workflow.to_dict()` and `Workflow.from_dict()`
convert to and from the file layout.

## Conditions

```python
import os
from sortkeeper.conditions import evaluate_conditions
from sortkeeper.types import Condition, ConditionType, OperatorType

big = Condition(ConditionType.FILE_SIZE, "size", OperatorType.GREATER_THAN, "5", "MB")
print(evaluate_conditions([big], path, os.stat(path)))
```

- `file_size`: integer value, optional unit `KB`, `MB` or `GB`; operators
  equals, not_equals, greater_than, less_than.
- `file_name`: compares the base name; equals, not_equals, contains,
  starts_with, ends_with, matches_regex.
- `file_type`: compares the lower-case extension without its dot; equals,
  not_equals, contains.
- `file_age`: seconds since last modification, value optionally in
  `minutes`, `hours` or `days`; same operators as size.

Unknown condition types, unknown operators and unparsable values never hold.
An empty list of conditions always holds.

## Watching directories

```python
from sortkeeper.watcher import Watcher

watcher = Watcher()
watcher.add_directory("/home/me/Downloads")
with watcher:
    event = watcher.next_event(timeout=5.0)
    print(event.path, event.op, event.info.st_size)
```

`Watcher` watches each directory non-recursively and reports created,
written and moved-in files (directories are skipped) as `FileModification`
records. At most 10 events are buffered; further ones are dropped with a
warning. `next_event` raises `TimeoutError` when nothing arrives in time
and returns `None` once the watcher is stopped and its buffer drained. A
stopped watcher cannot be started again.

## What sortkeeper does not do

- It has no pattern organizer: `Pattern`, `Config` and `OrganizeResult` are
  plain data types, and nothing in the package moves files by matching them
  against a list of patterns, handles collisions or makes backups.
- It has no background service that joins the watcher to the workflows, no
  PID-file management and no command-line interface. Feeding watcher events
  into `WorkflowManager.process_event` is left to the caller.