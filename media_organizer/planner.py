"""Reconciliation of source trees against the organized destination tree."""

from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging
import os

from .actions import (
    Action,
    ActionType,
    conflict_action,
    copy_action,
    move_action,
    skip_action,
)
from .cancellation import CancellationToken
from .config import Config
from .exceptions import MetadataError, OperationCancelled, OrganizerError
from .media import MediaRecord
from .progress import ProgressReporter
from .scanner import MediaScanner
from .worker_pool import WorkerPool

logger = logging.getLogger(__name__)

SourceIndex = Dict[str, MediaRecord]
DestinationIndex = Dict[str, List[MediaRecord]]


@dataclass
class Plan:
    """Ordered actions produced by one planning run."""
    move_mode: bool = False
    actions: List[Action] = field(default_factory=list)
    ignored_source_duplicates: int = 0

    def add_action(self, action: Action) -> None:
        self.actions.append(action)

    def actions_of(self, action_type: ActionType) -> List[Action]:
        return [a for a in self.actions if a.type is action_type]

    @property
    def has_conflicts(self) -> bool:
        return any(a.type is ActionType.CONFLICT for a in self.actions)

    def counts(self) -> Dict[ActionType, int]:
        counts = {action_type: 0 for action_type in ActionType}
        for action in self.actions:
            counts[action.type] += 1
        return counts

    def target_collisions(self) -> Dict[Path, List[MediaRecord]]:
        """
        Targets that a move or copy cannot write to.

        A target collides when several actions claim it, or when a file with
        different content already sits there and no planned move takes it
        away.
        """
        claims: Dict[Path, List[MediaRecord]] = OrderedDict()
        vacated = set()
        for action in self.actions:
            if action.type is ActionType.MOVE:
                vacated.add(action.source.path)
            if action.type in (ActionType.MOVE, ActionType.COPY):
                claims.setdefault(action.target_path(), []).append(action.source)

        return OrderedDict(
            (target, records) for target, records in claims.items()
            if len(records) > 1 or (os.path.lexists(target) and target not in vacated)
        )

    def __len__(self) -> int:
        return len(self.actions)


@dataclass
class MediaIndex:
    """Fingerprint indices for one run."""
    source: SourceIndex
    destination: DestinationIndex
    ignored_source_duplicates: int = 0


def build_source_index(records: Iterable[MediaRecord]) -> Tuple[SourceIndex, int]:
    """
    Index source records by fingerprint, first one wins.

    Returns:
        The index and the number of records dropped as duplicates
    """
    index: SourceIndex = OrderedDict()
    dropped = 0
    for record in records:
        existing = index.get(record.fingerprint)
        if existing is None:
            index[record.fingerprint] = record
        else:
            dropped += 1
            logger.info(f"Ignoring {record.path}: same content as {existing.path}")
    return index, dropped


def build_destination_index(records: Iterable[MediaRecord]) -> DestinationIndex:
    """Index destination records by fingerprint, keeping every record."""
    index: DestinationIndex = OrderedDict()
    for record in records:
        index.setdefault(record.fingerprint, []).append(record)
    return index


class ReconciliationPlanner:
    """Builds a plan that brings source files into the organized tree."""

    def __init__(self, config: Optional[Config] = None, token: Optional[CancellationToken] = None,
                 reporter=None):
        """
        Initialize planner.

        Args:
            config: Configuration instance, defaults when None
            token: Cancellation token shared with the rest of the run
            reporter: Object with ``print_summary(plan)``; summary is only
                logged when None
        """
        self.config = config or Config()
        self.token = token or CancellationToken()
        self.scanner = MediaScanner(self.config, self.token)
        self.reporter = reporter

    def build_plan(
        self,
        source_paths: Sequence[Path],
        destination: Path,
        move_mode: bool = False,
        type_filter: Optional[Iterable[str]] = None,
        no_sooc: bool = False,
    ) -> Plan:
        """
        Scan sources and destination and classify every fingerprint.

        Raises:
            OperationCancelled: If the run was interrupted while planning
            OrganizerError: On the first scan or metadata error
        """
        logger.info("building execution plan... "
                    "(depending on disk used and number of files this might take a while)")
        destination = Path(destination)
        type_filter = list(type_filter) if type_filter else None

        try:
            index = self.prepare_index(source_paths, destination, type_filter, no_sooc)
        except OperationCancelled as e:
            raise OperationCancelled("plan creation interrupted") from e

        plan = Plan(move_mode=move_mode, ignored_source_duplicates=index.ignored_source_duplicates)
        self._handle_destination_conflicts(plan, index)
        self._handle_destination_files(plan, index, destination)
        self._handle_source_files(plan, index, destination, move_mode)

        if self.reporter is not None:
            self.reporter.print_summary(plan)
        counts = plan.counts()
        logger.info(
            f"Plan: {counts[ActionType.MOVE]} move, {counts[ActionType.COPY]} copy, "
            f"{counts[ActionType.SKIP]} skip, {counts[ActionType.CONFLICT]} conflict"
        )
        return plan

    def prepare_index(
        self,
        source_paths: Sequence[Path],
        destination: Path,
        type_filter: Optional[List[str]],
        no_sooc: bool,
    ) -> MediaIndex:
        """Scan every tree, build both indices and resolve destination paths."""
        source_records: List[MediaRecord] = []
        for source_path in source_paths:
            logger.info(f"Scanning source directory {source_path}")
            source_records.extend(self.scanner.scan(source_path, type_filter, no_sooc))

        source_index, dropped = build_source_index(source_records)

        logger.info(f"Scanning destination directory {destination}")
        destination_records = self.scanner.scan(destination, type_filter, no_sooc)
        destination_index = build_destination_index(destination_records)

        index = MediaIndex(source_index, destination_index, dropped)
        self.compute_destination_paths(index, destination)
        return index

    def compute_destination_paths(self, index: MediaIndex, destination: Path) -> None:
        """Resolve the canonical path of every indexed record concurrently."""
        def resolve(record: MediaRecord) -> None:
            record.destination_path(destination)

        pool = WorkerPool(
            resolve,
            self.token,
            num_workers=self.config.get_parallel_jobs(),
            queue_size=self.config.get_queue_size(),
            progress=ProgressReporter("destinations", self.config.get_progress_step()),
            name="destinations",
        )

        records = list(index.source.values())
        for files in index.destination.values():
            records.extend(files)

        logger.info(f"  calculating destinations for {len(records)} files")
        pool.start()
        try:
            for record in records:
                if not pool.enqueue(record):
                    break
        finally:
            pool.seal()
            pool.stop()

        self.token.raise_if_cancelled("destination path resolution interrupted")
        error = pool.error
        if error is None:
            return
        if isinstance(error, OrganizerError):
            raise error
        # plain I/O errors carry the path in their own message
        raise MetadataError(f"error occurred while computing destination path: {error}") from error

    def _handle_destination_conflicts(self, plan: Plan, index: MediaIndex) -> None:
        for files in index.destination.values():
            if len(files) > 1:
                plan.add_action(conflict_action(files))

    def _handle_destination_files(self, plan: Plan, index: MediaIndex, destination: Path) -> None:
        for files in index.destination.values():
            if len(files) != 1:
                continue
            record = files[0]
            if record.destination_path(destination) != record.path:
                logger.debug(f"Misplaced: {record.path} -> {record.destination_path(destination)}")
                plan.add_action(move_action(record, destination))

    def _handle_source_files(self, plan: Plan, index: MediaIndex, destination: Path,
                             move_mode: bool) -> None:
        for fingerprint, record in index.source.items():
            existing = index.destination.get(fingerprint)
            if existing:
                plan.add_action(skip_action(record, existing[0]))
            elif move_mode:
                plan.add_action(move_action(record, destination))
            else:
                plan.add_action(copy_action(record, destination))
