"""Plan summaries and reports."""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import click

from .actions import ActionType
from .planner import Plan

logger = logging.getLogger(__name__)

SUMMARY_ORDER = (ActionType.SKIP, ActionType.COPY, ActionType.MOVE, ActionType.CONFLICT)


class PlanReporter:
    """Generates human-readable summaries of a plan."""

    def generate_summary_report(self, plan: Plan) -> str:
        """
        Generate the grouped action listing followed by the counts.

        Args:
            plan: Plan to describe

        Returns:
            Formatted summary report
        """
        report: List[str] = []
        report.append("Detailed Actions:")
        for action_type in SUMMARY_ORDER:
            for action in plan.actions_of(action_type):
                report.append(f"  {action.summary()}")
        collisions = plan.target_collisions()
        for target, records in collisions.items():
            report.append(f"  Collision: {target} <- {', '.join(str(r) for r in records)}")
        report.append("")

        counts = plan.counts()
        report.append("Plan Summary:")
        report.append(f"  Mode for new files: {'move' if plan.move_mode else 'copy'}")
        report.append(f"  Files to move: {counts[ActionType.MOVE]}")
        report.append(f"  Files to copy: {counts[ActionType.COPY]}")
        report.append(f"  Files skipped: {counts[ActionType.SKIP]}")
        if plan.ignored_source_duplicates:
            report.append(f"  Duplicate source files ignored: {plan.ignored_source_duplicates}")

        conflicts = counts[ActionType.CONFLICT]
        if conflicts > 0:
            report.append(f"  Detected conflicts: {conflicts} (will prevent execution of plan "
                          f"and reported actions might be incorrect)")
        else:
            report.append(f"  Detected conflicts: {conflicts}")
        if collisions:
            report.append(f"  Target collisions: {len(collisions)} (same name on the same day, "
                          f"will prevent execution of plan)")

        return "\n".join(report)

    def print_summary(self, plan: Plan) -> None:
        click.echo(self.generate_summary_report(plan))
        click.echo()

    def save_report(self, plan: Plan, filename: Optional[str] = None,
                    directory: Optional[Path] = None) -> str:
        """
        Save the plan summary to a file.

        Args:
            plan: Plan to describe
            filename: Target file; auto-generated in ``directory`` if None
            directory: Directory for auto-generated names, cwd if None

        Returns:
            Path to saved report file
        """
        if filename is None:
            timestamp = datetime.now().isoformat(timespec='seconds').replace(':', '-')
            report_file = Path(directory or Path.cwd()) / f"organize_plan_{timestamp}.txt"
        else:
            report_file = Path(filename)
        report_file.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(report_file, 'w', encoding='utf-8') as f:
                f.write(self.generate_summary_report(plan))
                f.write("\n")
        except OSError as e:
            logger.error(f"Failed to save report: {e}")
            raise

        logger.info(f"Report saved: {report_file}")
        return str(report_file)
