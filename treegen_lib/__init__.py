"""
treegen_lib: build a tree of directories and files from a declarative spec.

Supported spec formats (picked by extension):
- Markdown tree listings (.md, .markdown) using ├──/└──/│ or ASCII markers;
  names ending in '/' are directories.
- YAML, JSON, TOML and JSON5 documents mapping names to either null/a string
  (file, the string being its content) or a nested mapping (directory).
  An explicit form {type: file|dir, mode: "0o755", content: ..., children: {...}}
  is accepted for any node.

Public API:
- load_tree(spec_path) -> TreeNode
- generate_from_spec(spec_path, output_dir=".", reporter=None, dry_run=False, clean=False, mode=None)
- generate_from_specs(spec_paths, ...) -> processes several spec files in order
- plan_actions(tree, out_dir, clean=False, mode=None) / materialize(...)
- parse_mode("0o644") -> int
"""
from .errors import FilesystemError, ParseError, PathError, TreegenError
from .generator import generate_from_spec, generate_from_specs, load_tree
from .materializer import ActionKind, PlannedAction, execute, materialize, plan_actions
from .model import NodeKind, TreeNode, parse_mode
from .parsers import build_tree, parse_spec
from .reporter import Reporter

__all__ = [
    "ActionKind",
    "FilesystemError",
    "NodeKind",
    "ParseError",
    "PathError",
    "PlannedAction",
    "Reporter",
    "TreeNode",
    "TreegenError",
    "build_tree",
    "execute",
    "generate_from_spec",
    "generate_from_specs",
    "load_tree",
    "materialize",
    "parse_mode",
    "parse_spec",
    "plan_actions",
]
