"""Directory scanning and fingerprinting."""

from pathlib import Path
from typing import Iterable, List, Optional
import logging

from .cancellation import CancellationToken
from .config import Config
from .exceptions import FingerprintError, ScanError
from .fingerprint import fingerprint
from .media import MediaRecord
from .progress import ProgressReporter
from .utils import walk_media_files
from .worker_pool import WorkerPool

logger = logging.getLogger(__name__)


class MediaScanner:
    """Walks a directory tree and fingerprints its media files in parallel."""

    def __init__(self, config: Optional[Config] = None, token: Optional[CancellationToken] = None):
        """
        Initialize scanner.

        Args:
            config: Configuration instance, defaults when None
            token: Cancellation token shared with the rest of the run
        """
        self.config = config or Config()
        self.token = token or CancellationToken()

    def scan(
        self,
        root: Path,
        type_filter: Optional[Iterable[str]] = None,
        no_sooc: bool = False,
    ) -> List[MediaRecord]:
        """
        Fingerprint every media file under ``root``.

        Args:
            root: Directory to scan
            type_filter: Extensions to include; all supported types when None
            no_sooc: Place JPEGs directly in the date folder

        Returns:
            Records sorted by path

        Raises:
            OperationCancelled: The token was cancelled during the scan
            OrganizerError: The first walk, classification or read error
        """
        root = Path(root)
        types = list(type_filter) if type_filter else self.config.get_supported_types()

        def process(path: Path) -> MediaRecord:
            record = MediaRecord.from_path(path, no_sooc)
            try:
                record.fingerprint = fingerprint(path)
            except OSError as e:
                raise FingerprintError(f"error calculating partial hash for {path}: {e}") from e
            return record

        pool = WorkerPool(
            process,
            self.token,
            num_workers=self.config.get_parallel_jobs(),
            queue_size=self.config.get_queue_size(),
            progress=ProgressReporter(f"scan {root}", self.config.get_progress_step()),
            name="scan",
        )
        pool.start()
        try:
            for path in walk_media_files(root, types):
                if not pool.enqueue(path):
                    break
        except OSError as e:
            walk_error = ScanError(f"error walking {root}: {e}")
            walk_error.__cause__ = e
            pool.report_error(walk_error)
        finally:
            pool.seal()
            logger.info(f"  scanning {root}: {pool.total} files")
            pool.stop()

        self.token.raise_if_cancelled(f"scan of {root} interrupted")
        pool.raise_error()

        records = sorted(pool.results, key=lambda r: str(r.path))
        logger.debug(f"Scan of {root} produced {len(records)} records")
        return records
