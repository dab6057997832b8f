"""Canonical tree shared by every parser and consumed by the materializer."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

from .errors import ParseError


class NodeKind(str, Enum):
    DIRECTORY = "directory"
    FILE = "file"


@dataclass
class TreeNode:
    name: str
    kind: NodeKind
    children: List["TreeNode"] = field(default_factory=list)
    content: Optional[str] = None
    mode: Optional[int] = None

    @classmethod
    def directory(cls, name: str, mode: Optional[int] = None) -> "TreeNode":
        return cls(name=name, kind=NodeKind.DIRECTORY, mode=mode)

    @classmethod
    def file(cls, name: str, content: Optional[str] = None, mode: Optional[int] = None) -> "TreeNode":
        return cls(name=name, kind=NodeKind.FILE, content=content, mode=mode)

    @property
    def is_dir(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    def add_child(self, child: "TreeNode", source: Optional[str] = None, line: Optional[int] = None) -> "TreeNode":
        """Append child, refusing files as parents and duplicate names."""
        if not self.is_dir:
            raise ParseError(f"'{self.name}' is a file and cannot contain '{child.name}'", source, line)
        if any(existing.name == child.name for existing in self.children):
            where = self.name or "<root>"
            raise ParseError(f"duplicate entry '{child.name}' in '{where}'", source, line)
        self.children.append(child)
        return child

    def walk(self) -> Iterator["TreeNode"]:
        # pre-order, declaration order
        yield self
        for child in self.children:
            yield from child.walk()


def new_root() -> TreeNode:
    """The synthetic directory standing for the output root."""
    return TreeNode.directory("")


def parse_mode(value) -> int:
    """
    Read permission bits written as 0o644, 0644 or 644 (always octal).

    Integers are read by their digits too, so JSON "mode": 755 means 0o755.
    TOML 0o755 and YAML 0755 are decoded to 493 before they get here, so
    those formats need the mode quoted.
    """
    if isinstance(value, bool):
        raise ValueError(f"not a permission mode: {value!r}")
    text = str(value).strip().lower()
    if text.startswith("0o"):
        text = text[2:]
    if not text or any(ch not in "01234567" for ch in text):
        raise ValueError(f"not an octal permission mode: {value!r}")
    mode = int(text, 8)
    if not 0 <= mode <= 0o7777:
        raise ValueError(f"permission mode out of range: {value!r}")
    return mode
