from typing import Optional


class TreegenError(Exception):
    """Base class for every error raised while building a tree."""


class ParseError(TreegenError):
    """A spec file could not be read or does not describe a valid tree."""

    def __init__(self, message: str, source: Optional[str] = None, line: Optional[int] = None) -> None:
        self.message = message
        self.source = source
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        where = self.source or "<input>"
        if self.line is not None:
            where = f"{where}:{self.line}"
        return f"{where}: {self.message}"


class PathError(TreegenError):
    """A node name would resolve outside the output root or is not a plain segment."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.path = path
        super().__init__(message)


class FilesystemError(TreegenError):
    """A create/remove/chmod operation failed or the target path is occupied."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.path = path
        super().__init__(message)
