"""
Plan and apply the filesystem operations for a canonical tree.

The plan is always computed in full first. A real run then performs it and
a dry run only reports it, so both walk exactly the same action sequence.
"""
import logging
import os
import shutil
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .errors import FilesystemError
from .model import TreeNode
from .paths import resolve_paths
from .reporter import Reporter

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    CREATE_DIR = "create_dir"
    CREATE_FILE = "create_file"
    CLEAN = "clean"
    SET_MODE = "set_mode"


_CREATE_KINDS = (ActionKind.CREATE_DIR, ActionKind.CREATE_FILE)


@dataclass(frozen=True)
class PlannedAction:
    path: str
    kind: ActionKind
    would_conflict: bool = False
    mode: Optional[int] = None
    content: Optional[str] = None


def supports_permissions() -> bool:
    return os.name == "posix"


def _is_below(path: str, parent: str) -> bool:
    return path.startswith(parent.rstrip(os.sep) + os.sep)


def _check_output_root(out_dir: str) -> None:
    """Fail unless out_dir is, or can become, a directory."""
    path = os.path.abspath(out_dir)
    while not os.path.lexists(path):
        parent = os.path.dirname(path)
        if parent == path:
            return
        path = parent
    if not os.path.isdir(path):
        raise FilesystemError(f"cannot use output root {out_dir}: {path} is not a directory", out_dir)


def plan_actions(
    root: TreeNode,
    out_dir: str,
    clean: bool = False,
    mode: Optional[int] = None,
) -> List[PlannedAction]:
    """
    Compute the ordered actions that build root under out_dir.

    Per node, in pre-order: an optional Clean of whatever already sits at the
    path, the CreateDir/CreateFile itself, then an optional SetMode. A node's
    own mode wins over the global mode, which only applies to files.
    """
    _check_output_root(out_dir)
    chmod = supports_permissions()
    actions: List[PlannedAction] = []
    cleaned: List[str] = []

    for node, path in resolve_paths(root, out_dir):
        # anything below a cleaned path is gone by the time we get there
        gone = any(_is_below(path, c) for c in cleaned)
        exists = not gone and os.path.lexists(path)
        conflict = exists and os.path.isdir(path) != node.is_dir

        if clean and exists:
            actions.append(PlannedAction(path, ActionKind.CLEAN, would_conflict=conflict))
            cleaned.append(path)
            conflict = False

        if node.is_dir:
            actions.append(PlannedAction(path, ActionKind.CREATE_DIR, would_conflict=conflict))
        else:
            actions.append(PlannedAction(path, ActionKind.CREATE_FILE, would_conflict=conflict, content=node.content))

        node_mode = node.mode if node.mode is not None else (None if node.is_dir else mode)
        if node_mode is not None and chmod:
            actions.append(PlannedAction(path, ActionKind.SET_MODE, mode=node_mode))

    logger.debug("Planned %d actions under %s", len(actions), out_dir)
    return actions


def _remove(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    else:
        os.remove(path)


def _write_file(path: str, content: Optional[str]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(content or "")


def _perform(action: PlannedAction) -> None:
    if action.kind is ActionKind.CLEAN:
        _remove(action.path)
    elif action.kind is ActionKind.CREATE_DIR:
        os.makedirs(action.path, exist_ok=True)
    elif action.kind is ActionKind.CREATE_FILE:
        _write_file(action.path, action.content)
    elif action.kind is ActionKind.SET_MODE:
        os.chmod(action.path, action.mode)


def _conflict_message(action: PlannedAction) -> str:
    if action.kind is ActionKind.CREATE_DIR:
        return f"cannot create directory {action.path}: a file is in the way (use --clean to replace it)"
    return f"cannot create file {action.path}: a directory is in the way (use --clean to replace it)"


def execute(actions: List[PlannedAction], reporter: Optional[Reporter] = None, dry_run: bool = False) -> None:
    """
    Perform each action (skipped when dry_run) and report it once done.

    Stops at the first failure; nothing already created is rolled back and
    the failed action is not reported. A create whose target is occupied
    fails in dry runs too, so a preview ends where the real run would.
    """
    for action in actions:
        if action.would_conflict and action.kind in _CREATE_KINDS:
            raise FilesystemError(_conflict_message(action), action.path)
        if not dry_run:
            try:
                _perform(action)
            except OSError as e:
                raise FilesystemError(
                    f"{action.kind.value} failed for {action.path}: {e.strerror or e}", action.path
                ) from e
        if reporter is not None:
            reporter.report(action, dry_run)


def materialize(
    root: TreeNode,
    out_dir: str,
    reporter: Optional[Reporter] = None,
    dry_run: bool = False,
    clean: bool = False,
    mode: Optional[int] = None,
) -> List[PlannedAction]:
    """Plan root under out_dir, then execute the plan. Returns the plan."""
    actions = plan_actions(root, out_dir, clean=clean, mode=mode)
    if not dry_run:
        try:
            os.makedirs(out_dir, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"cannot create output root {out_dir}: {e.strerror or e}", out_dir) from e
    execute(actions, reporter, dry_run=dry_run)
    return actions
