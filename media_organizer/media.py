"""Media records discovered while scanning."""

import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from .exceptions import UnsupportedMediaError
from .metadata import DestinationFragment, jpeg_destination_fragment, raf_destination_fragment
from .metadata_video import mov_destination_fragment
from .utils import file_type


class MediaKind(Enum):
    """Supported media kinds, valued by their file extension."""
    JPG = "jpg"
    RAF = "raf"
    MOV = "mov"

    @property
    def location(self) -> str:
        """Top-level folder under the destination root."""
        if self is MediaKind.MOV:
            return "videos"
        return "photos"

    @classmethod
    def from_path(cls, path) -> "MediaKind":
        try:
            return cls(file_type(path))
        except ValueError:
            raise UnsupportedMediaError(f"unsupported media type: {path}") from None


_EXTRACTORS = {
    MediaKind.JPG: jpeg_destination_fragment,
    MediaKind.RAF: raf_destination_fragment,
    MediaKind.MOV: mov_destination_fragment,
}


class LazyPath:
    """
    Single-assignment cell computed at most once.

    The first caller claims the computation; concurrent callers wait for
    it and all callers see the same value or the same exception. Once the
    cell is filled, reads take no lock.
    """

    def __init__(self):
        self._claim_lock = threading.Lock()
        self._claimed = False
        self._done = threading.Event()
        self._value: Any = None
        self._error: Optional[BaseException] = None

    @property
    def is_computed(self) -> bool:
        return self._done.is_set()

    def get(self, compute: Callable[[], Any]) -> Any:
        if not self._done.is_set():
            with self._claim_lock:
                owner = not self._claimed
                self._claimed = True

            if owner:
                try:
                    self._value = compute()
                except Exception as e:
                    self._error = e
                finally:
                    self._done.set()
            else:
                self._done.wait()

        if self._error is not None:
            raise self._error
        return self._value


@dataclass(eq=False)
class MediaRecord:
    """A discovered media file and its content fingerprint."""
    path: Path
    kind: MediaKind
    no_sooc: bool = False
    _fingerprint: Optional[str] = field(default=None, init=False, repr=False)
    _destination: LazyPath = field(default_factory=LazyPath, init=False, repr=False)

    def __post_init__(self):
        self.path = Path(self.path)

    @classmethod
    def from_path(cls, path, no_sooc: bool = False) -> "MediaRecord":
        """Classify ``path`` by extension."""
        return cls(Path(path), MediaKind.from_path(path), no_sooc)

    @property
    def fingerprint(self) -> Optional[str]:
        return self._fingerprint

    @fingerprint.setter
    def fingerprint(self, value: str) -> None:
        if self._fingerprint is not None:
            raise ValueError(f"fingerprint already set for {self.path}")
        self._fingerprint = value

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    def destination_fragment(self) -> DestinationFragment:
        """Read the year/date/subfolder triple from the file's metadata."""
        return _EXTRACTORS[self.kind](self.path, self.no_sooc)

    def destination_path(self, destination_root) -> Path:
        """
        Canonical location of this file under ``destination_root``.

        Computed from file metadata on first call and memoized; later calls
        return the first result whatever root they pass.
        """
        def compute() -> Path:
            fragment = self.destination_fragment()
            media_home = Path(destination_root) / self.kind.location / fragment.year / fragment.date
            if fragment.subfolder:
                media_home = media_home / fragment.subfolder
            return media_home / self.path.name

        return self._destination.get(compute)

    def __str__(self) -> str:
        return str(self.path)
