"""Turn tree node names into absolute target paths under the output root."""
import os
from typing import List, Tuple

from .errors import PathError
from .model import TreeNode

_FORBIDDEN_SEGMENTS = {"", ".", ".."}


def _separators() -> Tuple[str, ...]:
    seps = {"/", os.sep}
    if os.altsep:
        seps.add(os.altsep)
    return tuple(seps)


def check_segment(name: str, parent_path: str) -> None:
    """Raise PathError unless name is a single plain path segment."""
    shown = os.path.join(parent_path, name)
    if name in _FORBIDDEN_SEGMENTS:
        raise PathError(f"invalid path segment {name!r} in {shown}", shown)
    if "\0" in name:
        raise PathError(f"NUL byte in name {name!r}", shown)
    if any(sep in name for sep in _separators()):
        raise PathError(f"name {name!r} contains a path separator", shown)


def _is_within(path: str, root: str) -> bool:
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        # different drives on Windows
        return False


def resolve_paths(root: TreeNode, out_dir: str) -> List[Tuple[TreeNode, str]]:
    """
    Resolve every node below root to an absolute path under out_dir.

    Returns (node, path) pairs in pre-order, parents before children and
    siblings in declaration order. The synthetic root itself is not included.
    The whole tree is checked before anything is returned, so a bad name
    anywhere means no path is handed to the filesystem.
    """
    base = os.path.abspath(out_dir)
    resolved: List[Tuple[TreeNode, str]] = []

    def visit(node: TreeNode, parent_path: str) -> None:
        for child in node.children:
            check_segment(child.name, parent_path)
            path = os.path.join(parent_path, child.name)
            if not _is_within(path, base):
                raise PathError(f"{path} escapes the output root {base}", path)
            resolved.append((child, path))
            visit(child, path)

    visit(root, base)
    return resolved
