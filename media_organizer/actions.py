"""Planned filesystem actions."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Tuple
import logging

from .media import MediaRecord
from .utils import copy_file, ensure_directory, move_file

logger = logging.getLogger(__name__)


class ActionType(Enum):
    """The closed set of things a plan can do with a file."""
    MOVE = "move"
    COPY = "copy"
    SKIP = "skip"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class Action:
    """
    One planned operation.

    ``records`` holds the acting file first. A skip also carries the
    destination file that already holds the same content; a conflict
    carries every destination file sharing one fingerprint.
    """
    type: ActionType
    records: Tuple[MediaRecord, ...]
    destination_root: Optional[Path] = None

    @property
    def source(self) -> MediaRecord:
        return self.records[0]

    def target_path(self) -> Path:
        """Canonical destination of the acting file."""
        if self.destination_root is None:
            raise ValueError(f"destination directory not specified for {self.source}")
        return self.source.destination_path(self.destination_root)

    def execute(self) -> str:
        """Perform the action and describe what was done."""
        if self.type is ActionType.MOVE:
            target = self.target_path()
            ensure_directory(target.parent)
            move_file(self.source.path, target)
            return f"Moving from {self.source} to {target}"
        elif self.type is ActionType.COPY:
            target = self.target_path()
            ensure_directory(target.parent)
            copy_file(self.source.path, target)
            return f"Copying from {self.source} to {target}"
        elif self.type is ActionType.SKIP:
            return f"Skipping {self.source}"
        elif self.type is ActionType.CONFLICT:
            return "conflict"
        raise ValueError(f"unknown action type: {self.type}")

    def summary(self) -> str:
        """One line describing the planned action."""
        if self.type is ActionType.MOVE:
            return f"Move: {self.source} -> {self.target_path()}"
        elif self.type is ActionType.COPY:
            return f"Copy: {self.source} -> {self.target_path()}"
        elif self.type is ActionType.SKIP:
            return f"Skip: {self.source} (already exists at {self.records[1]})"
        elif self.type is ActionType.CONFLICT:
            paths = ", ".join(str(r) for r in self.records)
            return f"Conflict: {len(self.records)} files share the same content: {paths}"
        raise ValueError(f"unknown action type: {self.type}")


def move_action(record: MediaRecord, destination_root: Path) -> Action:
    return Action(ActionType.MOVE, (record,), Path(destination_root))


def copy_action(record: MediaRecord, destination_root: Path) -> Action:
    return Action(ActionType.COPY, (record,), Path(destination_root))


def skip_action(source: MediaRecord, existing: MediaRecord) -> Action:
    return Action(ActionType.SKIP, (source, existing))


def conflict_action(records: Sequence[MediaRecord]) -> Action:
    if len(records) < 2:
        raise ValueError("a conflict needs at least two files")
    return Action(ActionType.CONFLICT, tuple(records))
