from typing import TYPE_CHECKING, List, Optional, TextIO

if TYPE_CHECKING:
    from .materializer import PlannedAction

_LABELS = {
    "create_dir": "create dir",
    "create_file": "create file",
    "clean": "remove",
    "set_mode": "chmod",
}


class Reporter:
    """Collects planned/performed actions and prints them when verbose."""

    def __init__(self, verbose: bool = False, stream: Optional[TextIO] = None) -> None:
        self.verbose = verbose
        self.stream = stream
        self.actions: List["PlannedAction"] = []

    def report(self, action: "PlannedAction", dry_run: bool = False) -> None:
        self.actions.append(action)
        if self.verbose:
            print(self.format(action, dry_run), file=self.stream)

    @staticmethod
    def format(action: "PlannedAction", dry_run: bool = False) -> str:
        label = _LABELS[action.kind.value]
        if action.mode is not None:
            label = f"{label} {action.mode:o}"
        line = f"{label}: {action.path}"
        if action.would_conflict:
            line += " (conflict)"
        return f"[dry-run] {line}" if dry_run else line

    def summary(self, out_dir: str, dry_run: bool = False) -> None:
        count = len(self.actions)
        if dry_run:
            print(f"Dry run completed, nothing written ({count} actions planned).", file=self.stream)
        else:
            print(f"Generation completed ({count} actions). Output at: {out_dir}", file=self.stream)
