"""
Spec-file parsers. Every format ends up as the same canonical TreeNode tree.

Markdown is read line by line as a box-drawing listing. YAML, JSON, TOML and
JSON5 are deserialized first and then handed to build_tree(), so equivalent
documents in those four formats always give identical trees.
"""
import json
import logging
import os
import re
import textwrap
import tomllib
from collections.abc import Hashable, Mapping
from typing import Any, Callable, Dict, List, Optional, Tuple

import json5
import yaml

from .errors import ParseError
from .model import TreeNode, new_root, parse_mode

logger = logging.getLogger(__name__)

Parser = Callable[[str, Optional[str]], TreeNode]

# ---- Markdown tree listings ----

_INDENT_BLOCKS = ("│   ", "|   ", "    ")
_BRANCH_MARKERS = ("├── ", "└── ", "|-- ", "`-- ", "+-- ")
_ANNOTATION_PATTERN = re.compile(r"\s+#.*$")
_GLYPHS_ONLY = re.compile(r"^[│|\s]*$")


def _split_tree_line(line: str) -> Tuple[int, str, bool]:
    """
    Return (depth, raw name, aligned) for one listing line. Top-level names
    have depth 1. aligned is False when indentation is left over that is not
    a whole 4-column block.
    """
    line = line.replace("\u00a0", " ")
    blocks = 0
    while line.startswith(_INDENT_BLOCKS):
        blocks += 1
        line = line[4:]
    if line.startswith(_BRANCH_MARKERS):
        return blocks + 2, line[4:], True
    return blocks + 1, line, not line.startswith((" ", "\t", "│", "|"))


def _clean_tree_name(raw: str) -> Tuple[str, bool]:
    name = _ANNOTATION_PATTERN.sub("", raw.strip())
    # ':' is not allowed in names on every platform
    name = name.replace(":", "_")
    is_dir = name.endswith("/")
    return name.rstrip("/"), is_dir


def parse_markdown(text: str, source: Optional[str] = None) -> TreeNode:
    """
    Parse a conventional tree listing, e.g.

        project/
        ├── src/
        │   └── main.rs
        └── README.md

    Names ending in '/' are directories. A line may only be nested one level
    below the directory it belongs to.
    """
    root = new_root()
    # open directories, innermost last
    stack: List[Tuple[int, TreeNode]] = [(0, root)]
    previous: Optional[Tuple[int, TreeNode]] = None

    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip() or line.strip().startswith("```") or _GLYPHS_ONLY.match(line):
            continue
        depth, raw, aligned = _split_tree_line(line.rstrip())
        if not aligned:
            raise ParseError("indentation is not a multiple of 4 columns", source, lineno)
        name, is_dir = _clean_tree_name(raw)
        if not name:
            raise ParseError("entry has no name", source, lineno)

        while stack[-1][0] >= depth:
            stack.pop()
        parent_depth, parent = stack[-1]
        if depth > parent_depth + 1:
            if previous is not None and previous[0] == depth - 1 and not previous[1].is_dir:
                raise ParseError(f"'{name}' is nested under file '{previous[1].name}'", source, lineno)
            raise ParseError(
                f"'{name}' is indented {depth - parent_depth} levels below its parent", source, lineno
            )

        node = TreeNode.directory(name) if is_dir else TreeNode.file(name)
        parent.add_child(node, source, lineno)
        if is_dir:
            stack.append((depth, node))
        previous = (depth, node)

    return root


# ---- Structured documents ----

_TAG_KEYS = {"type", "mode", "content", "children"}
_FILE_TYPES = {"file"}
_DIR_TYPES = {"dir", "directory"}


def _is_tagged(value: Any) -> bool:
    if not isinstance(value, Mapping):
        return False
    kind = value.get("type")
    return isinstance(kind, str) and kind in _FILE_TYPES | _DIR_TYPES and set(value) <= _TAG_KEYS


def _node_mode(value: Any, name: str, source: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return parse_mode(value)
    except ValueError as e:
        raise ParseError(f"invalid mode for '{name}': {e}", source) from e


def _build_tagged(name: str, value: Mapping[str, Any], source: Optional[str]) -> TreeNode:
    mode = _node_mode(value.get("mode"), name, source)
    if value["type"] in _FILE_TYPES:
        if "children" in value:
            raise ParseError(f"file '{name}' cannot have children", source)
        content = value.get("content")
        if content is not None and not isinstance(content, str):
            raise ParseError(f"content of '{name}' must be a string", source)
        return TreeNode.file(name, content or None, mode)

    if "content" in value:
        raise ParseError(f"directory '{name}' cannot have content", source)
    node = TreeNode.directory(name, mode)
    children = value.get("children")
    if children is None:
        return node
    if not isinstance(children, Mapping):
        raise ParseError(f"children of '{name}' must be a mapping", source)
    _add_entries(node, children, source)
    return node


def _build_node(name: str, value: Any, source: Optional[str]) -> TreeNode:
    if _is_tagged(value):
        return _build_tagged(name, value, source)
    if isinstance(value, Mapping):
        if not value:
            return TreeNode.file(name)
        node = TreeNode.directory(name)
        _add_entries(node, value, source)
        return node
    if isinstance(value, (list, tuple)):
        raise ParseError(f"'{name}' is a list; use a mapping for directories", source)
    if value is None or value == "":
        return TreeNode.file(name)
    if isinstance(value, str):
        return TreeNode.file(name, value)
    return TreeNode.file(name, str(value))


def _add_entries(parent: TreeNode, entries: Mapping[Any, Any], source: Optional[str]) -> None:
    for key, value in entries.items():
        name = str(key)
        parent.add_child(_build_node(name, value, source), source)


def build_tree(data: Any, source: Optional[str] = None) -> TreeNode:
    """
    Convert a deserialized document into a canonical tree.

    - null, "" or {} -> empty file
    - any other scalar -> file holding that text
    - non-empty mapping -> directory
    - {type: file|dir, mode, content, children} -> explicit node
    """
    root = new_root()
    if data is None:
        return root
    if not isinstance(data, Mapping):
        raise ParseError("top level must be a mapping of names", source)
    _add_entries(root, data, source)
    return root


class _UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that refuses repeated keys instead of keeping the last one."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            if key_node.tag == "tag:yaml.org,2002:merge":
                continue
            key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, Hashable):
                continue
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    f"found duplicate key {key!r}", key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def parse_yaml(text: str, source: Optional[str] = None) -> TreeNode:
    try:
        data = yaml.load(text, Loader=_UniqueKeyLoader)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line = mark.line + 1 if mark is not None else None
        problem = getattr(e, "problem", None) or str(e)
        raise ParseError(f"invalid YAML: {problem}", source, line) from e
    return build_tree(data, source)


def _reject_duplicates(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise ValueError(f"duplicate key {key!r}")
        result[key] = value
    return result


def parse_json(text: str, source: Optional[str] = None) -> TreeNode:
    try:
        data = json.loads(text, object_pairs_hook=_reject_duplicates)
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid JSON: {e.msg}", source, e.lineno) from e
    except ValueError as e:
        raise ParseError(f"invalid JSON: {e}", source) from e
    return build_tree(data, source)


def parse_toml(text: str, source: Optional[str] = None) -> TreeNode:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ParseError(f"invalid TOML: {e}", source, getattr(e, "lineno", None)) from e
    return build_tree(data, source)


# Backtick strings are JSON5-in-name-only; comments and ordinary strings are
# matched too so backticks inside them are left alone.
_JSON5_TOKEN_PATTERN = re.compile(
    r'//[^\n]*|/\*.*?\*/|"(?:\\.|[^\\"])*"|\'(?:\\.|[^\\\'])*\'|`([^`]*)`',
    re.DOTALL,
)


def _dedent_block(text: str) -> str:
    lines = text.splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return textwrap.dedent("\n".join(lines))


def _quote_backtick_strings(text: str) -> str:
    def repl(match: re.Match) -> str:
        block = match.group(1)
        if block is None:
            return match.group(0)
        return json.dumps(_dedent_block(block), ensure_ascii=False)

    return _JSON5_TOKEN_PATTERN.sub(repl, text)


def parse_json5(text: str, source: Optional[str] = None) -> TreeNode:
    """Parse JSON5; `multi-line` backtick strings are dedented and used as file content."""
    try:
        data = json5.loads(_quote_backtick_strings(text), allow_duplicate_keys=False)
    except ValueError as e:
        raise ParseError(f"invalid JSON5: {e}", source) from e
    return build_tree(data, source)


# ---- Dispatch ----

PARSERS: Dict[str, Parser] = {
    ".md": parse_markdown,
    ".markdown": parse_markdown,
    ".yaml": parse_yaml,
    ".yml": parse_yaml,
    ".json": parse_json,
    ".toml": parse_toml,
    ".json5": parse_json5,
}


def parser_for(path: str) -> Parser:
    """Pick the parser from the spec file's extension."""
    ext = os.path.splitext(path)[1].lower()
    try:
        return PARSERS[ext]
    except KeyError:
        supported = ", ".join(sorted(PARSERS))
        raise ParseError(f"unsupported extension '{ext}' (expected one of {supported})", path) from None


def parse_spec(path: str, text: str) -> TreeNode:
    parser = parser_for(path)
    logger.debug("Parsing %s with %s", path, parser.__name__)
    return parser(text, path)
