"""Exception hierarchy for media organization."""

from typing import Optional


class OrganizerError(Exception):
    """Base exception for all media organizer errors."""
    pass


class MetadataError(OrganizerError):
    """Raised when the capture time needed to place a file cannot be read."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)

    def with_path(self, path) -> "MetadataError":
        """Return the same error bound to ``path``."""
        self.path = str(path)
        self.args = (f"{self.path}: {self.message}",)
        return self


class ExifNotFoundError(MetadataError):
    """No EXIF block or no timestamp tag inside it."""

    def __init__(self, path: Optional[str] = None):
        super().__init__("exif data not found", path)


class InvalidAtomSizeError(MetadataError):
    def __init__(self, path: Optional[str] = None):
        super().__init__("invalid atom size", path)


class CreationTimeNotSetError(MetadataError):
    def __init__(self, path: Optional[str] = None):
        super().__init__("creation time not set", path)


class CompressedMovieError(MetadataError):
    def __init__(self, path: Optional[str] = None):
        super().__init__("compressed video (cmov) is not supported", path)


class ReferenceMovieError(MetadataError):
    def __init__(self, path: Optional[str] = None):
        super().__init__("reference video (rmra) is not supported", path)


class MovieHeaderNotFoundError(MetadataError):
    def __init__(self, path: Optional[str] = None):
        super().__init__("movie header atom not found", path)


class UnsupportedMediaError(OrganizerError):
    """Raised when a file extension maps to no known media kind."""
    pass


class FingerprintError(OrganizerError):
    """Raised when a file cannot be read for fingerprinting."""
    pass


class ScanError(OrganizerError):
    """Raised when a directory tree cannot be walked."""
    pass


class FileOperationError(OrganizerError):
    """Raised when a copy or move cannot be completed."""
    pass


class InsufficientSpaceError(FileOperationError):
    """Raised when the destination volume cannot hold the planned copies."""
    pass


class OperationCancelled(OrganizerError):
    """Raised when a run is interrupted through its cancellation token."""
    pass
