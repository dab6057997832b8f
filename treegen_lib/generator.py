import logging
from typing import Iterable, List, Optional

from .errors import ParseError
from .materializer import PlannedAction, materialize
from .model import TreeNode
from .parsers import parse_spec
from .reporter import Reporter

logger = logging.getLogger(__name__)


def _read_spec(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise ParseError(f"cannot read spec file: {e.strerror or e}", path) from e
    except UnicodeDecodeError as e:
        raise ParseError("spec file is not valid UTF-8", path) from e


def load_tree(spec_path: str) -> TreeNode:
    """Read spec_path and parse it with the parser matching its extension."""
    return parse_spec(spec_path, _read_spec(spec_path))


def generate_from_spec(
    spec_path: str,
    output_dir: str = ".",
    reporter: Optional[Reporter] = None,
    dry_run: bool = False,
    clean: bool = False,
    mode: Optional[int] = None,
) -> List[PlannedAction]:
    """
    Build the tree described by spec_path under output_dir.

    - dry_run reports the plan without touching the filesystem.
    - clean removes whatever already sits at a node's path before creating it.
    - mode is applied to every created file (nodes may carry their own).
    """
    tree = load_tree(spec_path)
    logger.debug("Materializing %s into %s", spec_path, output_dir)
    return materialize(tree, output_dir, reporter=reporter, dry_run=dry_run, clean=clean, mode=mode)


def generate_from_specs(
    spec_paths: Iterable[str],
    output_dir: str = ".",
    reporter: Optional[Reporter] = None,
    dry_run: bool = False,
    clean: bool = False,
    mode: Optional[int] = None,
) -> List[PlannedAction]:
    """
    Process spec files one after another, each finishing before the next one
    starts. The first error propagates and later specs are left untouched.
    """
    actions: List[PlannedAction] = []
    for spec_path in spec_paths:
        actions.extend(
            generate_from_spec(spec_path, output_dir, reporter=reporter, dry_run=dry_run, clean=clean, mode=mode)
        )
    return actions
