#!/usr/bin/env python3
"""
Media Organizer CLI

Organizes photo and video media into a Lightroom style directory tree,
recognizing already organized files by content rather than by name.
"""

import signal
import sys
import logging
from contextlib import contextmanager
from pathlib import Path

import click
from colorama import init, Fore, Style

from media_organizer import (
    CancellationToken,
    Config,
    PlanExecutor,
    PlanReporter,
    ReconciliationPlanner,
)
from media_organizer.config import SUPPORTED_TYPES
from media_organizer.exceptions import OperationCancelled, OrganizerError
from media_organizer.fingerprint import calculate_sha256, fingerprint

# Initialize colorama for cross-platform colored output
init()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = 'INFO', log_file: Path = None):
    """Set up logging configuration."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in list(root_logger.handlers):
        if getattr(handler, '_media_organizer', False):
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler._media_organizer = True
    root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        file_handler._media_organizer = True
        root_logger.addHandler(file_handler)

    # Reduce noise from libraries
    logging.getLogger('exifread').setLevel(logging.ERROR)


def print_header(title: str):
    """Print a formatted header."""
    click.echo(f"\n{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}")
    click.echo(f"{Fore.CYAN}{title.center(60)}{Style.RESET_ALL}")
    click.echo(f"{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}\n")
    sys.stdout.flush()


def print_success(message: str):
    """Print success message."""
    click.echo(f"{Fore.GREEN}OK: {message}{Style.RESET_ALL}")


def print_warning(message: str):
    """Print warning message."""
    click.echo(f"{Fore.YELLOW}WARN: {message}{Style.RESET_ALL}")


def print_error(message: str):
    """Print error message."""
    click.echo(f"{Fore.RED}ERROR: {message}{Style.RESET_ALL}")


def print_info(message: str):
    """Print info message."""
    click.echo(f"{Fore.BLUE}INFO: {message}{Style.RESET_ALL}")


@contextmanager
def cancel_on_interrupt(token: CancellationToken):
    """Turn the first Ctrl+C into a cancellation request; a second one aborts."""
    def handler(signum, frame):
        token.cancel()
        signal.signal(signal.SIGINT, previous)

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


def validate_paths(sources, destination: Path):
    """Return a list of problems with the source and destination directories."""
    errors = []
    if destination.exists() and not destination.is_dir():
        errors.append(f"Destination is not a directory: {destination}")
    for source in sources:
        if source == destination:
            errors.append(f"Source and destination are the same directory: {source}")
    if len(set(sources)) != len(sources):
        errors.append("The same source directory was given more than once")
    return errors


type_option = click.option(
    '--type', '-t', 'types', multiple=True,
    type=click.Choice(SUPPORTED_TYPES, case_sensitive=False),
    help='Only process these media types (repeatable, default: all)')
no_sooc_option = click.option(
    '--no-sooc', is_flag=True, default=None,
    help='Place JPEGs directly in the date folder instead of a sooc subfolder')


@click.group()
@click.option('--config', '-c', help='Path to configuration file')
@click.option('--log-level', '-l', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Logging level')
@click.option('--log-file', type=click.Path(dir_okay=False, path_type=Path),
              help='Also write the log to this file')
@click.pass_context
def cli(ctx, config, log_level, log_file):
    """Media Organizer - content-aware photo and video organization."""

    setup_logging(log_level or 'INFO', log_file)

    try:
        config_obj = Config(config)

        errors = config_obj.validate_config()
        if errors:
            print_error("Configuration validation failed:")
            for error in errors:
                click.echo(f"  - {error}")
            sys.exit(1)

        if log_level is None:
            setup_logging(config_obj.get_log_level(), log_file)

        ctx.ensure_object(dict)
        ctx.obj['config'] = config_obj

    except (OSError, ValueError) as e:
        print_error(f"Failed to load configuration: {e}")
        sys.exit(1)


@cli.command()
@click.argument('sources', nargs=-1, required=True,
                type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument('destination', type=click.Path(path_type=Path))
@click.option('--move', is_flag=True, help='Move new files instead of copying them')
@type_option
@no_sooc_option
@click.option('--dry-run', '-d', is_flag=True, help='Print the plan without modifying the file system')
@click.option('--report', '-r', type=click.Path(dir_okay=False, path_type=Path),
              help='Save the plan summary to this file')
@click.option('--progress', is_flag=True, help='Show a progress bar while applying the plan')
@click.pass_context
def organize(ctx, sources, destination, move, types, no_sooc, dry_run, report, progress):
    """Organize SOURCES into the DESTINATION tree."""

    print_header("MEDIA ORGANIZATION")

    config = ctx.obj['config']
    sources = [s.resolve() for s in sources]
    destination = destination.resolve()
    if no_sooc is None:
        no_sooc = config.is_no_sooc()
    type_filter = [t.lower() for t in types] or None

    errors = validate_paths(sources, destination)
    if errors:
        for error in errors:
            print_error(error)
        sys.exit(1)

    destination.mkdir(parents=True, exist_ok=True)

    reporter = PlanReporter()
    token = CancellationToken()

    try:
        with cancel_on_interrupt(token):
            planner = ReconciliationPlanner(config, token, reporter)
            plan = planner.build_plan(sources, destination, move, type_filter, no_sooc)

            if report:
                report_file = reporter.save_report(plan, str(report))
                print_success(f"Report saved: {report_file}")

            if dry_run:
                print_info("DRY RUN completed - no files were modified")
                return

            executor = PlanExecutor(config, token, show_progress=progress)
            result = executor.apply(plan)

        if result.refused:
            print_warning("Plan was not applied because of conflicts")
            sys.exit(1)
        if result.cancelled:
            print_warning(f"Interrupted: {result.applied} of {len(plan)} actions applied")
            sys.exit(1)

        print_success(f"Moved {result.moved:,}, copied {result.copied:,}, skipped {result.skipped:,}")

    except OperationCancelled as e:
        print_warning(str(e))
        sys.exit(1)
    except (OrganizerError, OSError) as e:
        print_error(str(e))
        sys.exit(1)


@cli.command()
@click.argument('destination', type=click.Path(exists=True, file_okay=False, path_type=Path))
@type_option
@no_sooc_option
@click.pass_context
def check(ctx, destination, types, no_sooc):
    """Report misplaced files and conflicts in DESTINATION without changing it."""

    print_header("DESTINATION CHECK")

    config = ctx.obj['config']
    if no_sooc is None:
        no_sooc = config.is_no_sooc()
    token = CancellationToken()

    try:
        with cancel_on_interrupt(token):
            planner = ReconciliationPlanner(config, token, PlanReporter())
            plan = planner.build_plan([], destination.resolve(), False,
                                      [t.lower() for t in types] or None, no_sooc)
    except OperationCancelled as e:
        print_warning(str(e))
        sys.exit(1)
    except (OrganizerError, OSError) as e:
        print_error(str(e))
        sys.exit(1)

    if plan.has_conflicts or len(plan) > 0:
        print_warning(f"{len(plan)} issue(s) found in {destination}")
        sys.exit(1)

    print_success(f"{destination} is organized")


@cli.command(name='fingerprint')
@click.argument('files', nargs=-1, required=True,
                type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--full', is_flag=True, help='Also print the SHA256 of the whole file')
def fingerprint_command(files, full):
    """Print content fingerprints of FILES."""
    for path in files:
        line = f"{fingerprint(path)}  {path}"
        if full:
            line = f"{line}  sha256={calculate_sha256(path)}"
        click.echo(line)


if __name__ == '__main__':
    cli()
