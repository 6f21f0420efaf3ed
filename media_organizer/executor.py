"""Plan execution."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import logging

import click
from tqdm import tqdm

from .actions import Action, ActionType
from .cancellation import CancellationToken
from .config import Config
from .exceptions import FileOperationError, InsufficientSpaceError
from .fingerprint import fingerprint
from .planner import Plan
from .utils import format_bytes, get_available_space

logger = logging.getLogger(__name__)

CONFLICT_GUIDANCE = ("File conflicts need to be resolved before application can proceed. "
                     "Resolve them and rerun application to continue.")


@dataclass
class ExecutionResult:
    """Outcome of applying a plan."""
    moved: int = 0
    copied: int = 0
    skipped: int = 0
    refused: bool = False
    cancelled: bool = False
    results: List[str] = field(default_factory=list)

    @property
    def applied(self) -> int:
        return self.moved + self.copied + self.skipped


class PlanExecutor:
    """Applies plan actions in order."""

    def __init__(self, config: Optional[Config] = None, token: Optional[CancellationToken] = None,
                 show_progress: bool = True):
        self.config = config or Config()
        self.token = token or CancellationToken()
        self.show_progress = show_progress
        self.verify_copies = self.config.should_verify_copies()
        self.min_free_space_bytes = self.config.get_min_free_space_mb() * 1024 * 1024

    def apply(self, plan: Plan) -> ExecutionResult:
        """
        Execute every action of ``plan``.

        A plan containing any conflict is refused as a whole. Cancellation
        stops before the next action; actions already applied stay applied.

        Raises:
            InsufficientSpaceError: The copies would not fit on the destination volume
            FileOperationError: A target path is already taken or claimed twice
            OSError, FileOperationError: The first failing action
        """
        result = ExecutionResult()
        click.echo("Applying plan:")

        if plan.has_conflicts:
            click.echo(f"  {CONFLICT_GUIDANCE}")
            logger.warning("Plan contains conflicts, nothing was applied")
            result.refused = True
            return result

        self._check_targets(plan)
        self._check_space(plan)

        with tqdm(plan.actions, desc="Applying plan", unit="files",
                  disable=not self.show_progress) as pbar:
            for action in pbar:
                if self.token.cancelled:
                    logger.warning(f"Plan interrupted after {result.applied} of {len(plan)} actions")
                    result.cancelled = True
                    break

                message = self._execute(action)
                result.results.append(message)
                tqdm.write(f"  {message}")

                if action.type is ActionType.MOVE:
                    result.moved += 1
                elif action.type is ActionType.COPY:
                    result.copied += 1
                elif action.type is ActionType.SKIP:
                    result.skipped += 1

        logger.info(f"Plan applied: {result.moved} moved, {result.copied} copied, "
                    f"{result.skipped} skipped")
        return result

    def _execute(self, action: Action) -> str:
        message = action.execute()
        logger.debug(message)

        if action.type is ActionType.COPY and self.verify_copies:
            target = action.target_path()
            if fingerprint(target) != action.source.fingerprint:
                raise FileOperationError(f"Fingerprint verification failed: {action.source} -> {target}")

        return message

    def _check_targets(self, plan: Plan) -> None:
        """Refuse the plan before any mutation if a target cannot be written."""
        collisions = plan.target_collisions()
        if not collisions:
            return

        for target, records in collisions.items():
            logger.error(f"Target collision: {target} <- {', '.join(str(r) for r in records)}")
        raise FileOperationError(
            f"{len(collisions)} target path(s) already taken or claimed twice, "
            f"first: {next(iter(collisions))}"
        )

    def _check_space(self, plan: Plan) -> None:
        """Make sure all planned copies fit before touching anything."""
        copies = plan.actions_of(ActionType.COPY)
        if not copies:
            return

        needed = sum(action.source.size for action in copies) + self.min_free_space_bytes
        root = Path(copies[0].destination_root)
        available = get_available_space(root)
        if needed > available:
            raise InsufficientSpaceError(
                f"Insufficient space on {root}: need {format_bytes(needed)}, "
                f"have {format_bytes(available)}"
            )
        logger.info(f"Space check OK: need {format_bytes(needed)}, have {format_bytes(available)}")
