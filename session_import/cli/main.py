#!/usr/bin/env python3
"""
Command-line interface for session-import.

Provides commands to discover AI assistant session logs and import them into
the local store.
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
import traceback
from pathlib import Path
from typing import TypeGuard

import typer

from session_import.backends.local import LocalImportBackend
from session_import.cli.logger import CLILogger
from session_import.config.base import get_settings
from session_import.config.local import LocalBackendSettings
from session_import.exceptions import SessionImportError
from session_import.schemas import CancelledEvent, ImportEvent, ImportOutcome, ProgressEvent
from session_import.services.catalog import total_session_count
from session_import.services.wizard import ImportWizard
from session_import.types import ImportSource

app = typer.Typer(
    name='session-import',
    help='Discover and import AI assistant session logs',
    add_completion=False,
)

EXIT_CANCELLED = 130


def _is_import_source(value: str) -> TypeGuard[ImportSource]:
    """Type guard for valid import sources."""
    return value in ('claude', 'gemini', 'cursor')


def _validate_source(value: str | None) -> ImportSource | None:
    """Validate and narrow import source for typer callback."""
    if value is None:
        return None
    if _is_import_source(value):
        return value
    raise typer.BadParameter("Must be 'claude', 'gemini' or 'cursor'")


def _build_wizard(store: Path | None, directory: Path | None, logger: CLILogger) -> ImportWizard:
    settings = get_settings(LocalBackendSettings)
    if store is not None:
        settings = settings.model_copy(update={'STORE_DIR': store.expanduser().resolve()})
    backend = LocalImportBackend(settings=settings, manual_directory=directory)
    return ImportWizard(backend, settings=settings, logger=logger)


async def _discover(wizard: ImportWizard, source: ImportSource | None, directory: Path | None) -> int:
    """Populate the wizard catalog from a directory or a source; returns the file count."""
    if directory is not None:
        if not directory.is_dir():
            typer.secho(f'Error: Directory does not exist: {directory}', fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        files = await wizard.select_files_manually()
    else:
        wizard.set_source(source or 'claude')
        files = await wizard.scan()
    return len(files)


# ==============================================================================
# scan
# ==============================================================================


@app.command()
def scan(
    source: str | None = typer.Option(
        None, '--source', '-s', help='Log source: claude, gemini or cursor (default: claude)', callback=_validate_source
    ),
    directory: Path | None = typer.Option(None, '--dir', '-d', help='Scan this directory instead of a source default'),
    query: str = typer.Option('', '--query', '-q', help='Filter projects/sessions by name'),
    store: Path | None = typer.Option(None, '--store', help='Import store directory'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """List discovered sessions grouped by project, with their import status."""
    asyncio.run(_scan_async(_validate_source(source), directory, query, store, verbose))


async def _scan_async(
    source: ImportSource | None,
    directory: Path | None,
    query: str,
    store: Path | None,
    verbose: bool,
) -> None:
    """Async implementation of scan command."""
    logger = CLILogger(verbose=verbose)

    try:
        wizard = _build_wizard(store, directory, logger)
        await wizard.open()
        if not await _discover(wizard, source, directory):
            typer.echo('No session files found.')
            return

        wizard.set_search_query(query)
        groups = wizard.visible_groups()
        for group in groups:
            status = wizard.import_status(group.project_path)
            imported = sum(1 for s in group.sessions if wizard.is_session_imported(s.path))
            color = typer.colors.GREEN if status == 'new' else typer.colors.BRIGHT_BLACK
            typer.secho(f'{group.project_name}  [{status}]', fg=color, bold=True)
            typer.echo(f'  {group.project_path}')
            typer.echo(f'  {len(group.sessions)} session(s), {imported} already imported')
            if verbose:
                for session in group.sessions:
                    marker = '✓' if wizard.is_session_imported(session.path) else ' '
                    typer.echo(f'    {marker} {session.name}  ({session.size:,} bytes)')

        summary = wizard.selection_summary()
        typer.echo()
        typer.echo(
            f'{summary.total_projects} project(s), {summary.total_sessions} session(s), '
            f'{summary.imported_session_count} already imported, {summary.new_project_count} project(s) with new sessions'
        )
        if query:
            typer.echo(f'Showing {len(groups)} project(s), {total_session_count(groups)} session(s) matching {query!r}')

    except SessionImportError as e:
        typer.secho(f'Error: {e}', fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except typer.Exit:
        raise
    except Exception as e:
        await logger.error(f'Failed to scan sessions: {e}')
        if verbose:
            traceback.print_exc()
        raise typer.Exit(1)


# ==============================================================================
# import
# ==============================================================================


@app.command(name='import')
def import_(
    source: str | None = typer.Option(
        None, '--source', '-s', help='Log source: claude, gemini or cursor (default: claude)', callback=_validate_source
    ),
    directory: Path | None = typer.Option(None, '--dir', '-d', help='Import from this directory instead'),
    project: list[str] | None = typer.Option(None, '--project', '-p', help='Only import these projects (name or path)'),
    retry: bool = typer.Option(False, '--retry', help='Retry failed files once'),
    store: Path | None = typer.Option(None, '--store', help='Import store directory'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Import discovered sessions into the local store.

    By default every session not yet imported is selected. Press Ctrl-C to
    stop after the file in progress.
    """
    asyncio.run(_import_async(_validate_source(source), directory, project or [], retry, store, verbose))


def _select_projects(wizard: ImportWizard, projects: list[str]) -> None:
    wizard.clear_all()
    groups = wizard.catalog.group_by_project()
    for name in projects:
        matches = [g for g in groups if name in (g.project_name, g.project_path)]
        if not matches:
            typer.secho(f'Error: Project not found: {name}', fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        for group in matches:
            if not wizard.can_toggle_project(group.project_path):
                typer.secho(f'Skipping {group.project_name}: already imported', fg=typer.colors.YELLOW)
                continue
            if not wizard.project_selection_state(group.project_path).is_selected:
                wizard.toggle_project(group.project_path)


def _print_progress(event: ImportEvent) -> None:
    if isinstance(event, ProgressEvent):
        progress = event.progress
        if progress.current == 0:
            return
        name = Path(progress.current_file).name
        typer.echo(
            f'\r  [{progress.current}/{progress.total}] ✓ {progress.success_count}  ✗ {progress.failure_count}  {name}'
            + ' ' * 10,
            nl=False,
        )
    elif isinstance(event, CancelledEvent):
        typer.echo()
        typer.secho(f'Stopping after {event.processed_count} file(s)...', fg=typer.colors.YELLOW)


def _print_summary(wizard: ImportWizard, outcome: ImportOutcome) -> None:
    stats = wizard.stats()
    typer.echo()
    if outcome.cancelled:
        typer.secho('Import stopped.', fg=typer.colors.YELLOW)
        typer.echo(f'  Processed: {len(outcome.results)}/{outcome.total} ({outcome.skipped_count} not attempted)')
    else:
        typer.secho('✓ Import finished.', fg=typer.colors.GREEN)
    typer.echo(f'  Imported: {stats.success_count}')
    typer.echo(f'  Failed: {stats.failure_count}')
    typer.echo(f'  Projects: {stats.project_count}')

    if wizard.imported_projects:
        typer.echo()
        typer.echo('  Imported projects:')
        for imported in wizard.imported_projects:
            typer.echo(f'    - {imported.name}: {imported.session_count} session(s), first {imported.first_session_id}')

    failed = wizard.failed_files()
    if failed:
        typer.echo()
        typer.secho('  Failed files:', fg=typer.colors.RED)
        for row in failed:
            typer.echo(f'    - {row.file_path}: {row.error}')
        typer.echo()
        typer.echo('Failed files stay unimported: run the import again to pick them up,')
        typer.echo('or pass --retry to retry them once within the same run.')


async def _import_async(
    source: ImportSource | None,
    directory: Path | None,
    projects: list[str],
    retry: bool,
    store: Path | None,
    verbose: bool,
) -> None:
    """Async implementation of import command."""
    logger = CLILogger(verbose=verbose)

    try:
        wizard = _build_wizard(store, directory, logger)
        await wizard.open()
        if not await _discover(wizard, source, directory):
            typer.echo('No session files found.')
            return

        if projects:
            _select_projects(wizard, projects)
        else:
            wizard.select_all_new()

        summary = wizard.selection_summary()
        if summary.selected_count == 0:
            typer.echo('Nothing to import: all discovered sessions are already imported.')
            return

        typer.echo(f'Importing {summary.selected_count} session(s) from {summary.selected_project_count} project(s)')
        wizard.subscribe(_print_progress)

        loop = asyncio.get_running_loop()
        with contextlib.suppress(NotImplementedError):  # No signal handlers on Windows event loops
            loop.add_signal_handler(signal.SIGINT, lambda: loop.create_task(wizard.cancel()))
        try:
            outcome = await wizard.start_import()
            if retry and wizard.failed_paths() and not outcome.cancelled:
                typer.echo()
                typer.echo(f'Retrying {len(wizard.failed_paths())} failed file(s)')
                retry_outcome = await wizard.retry_failed()
                if retry_outcome is not None:
                    outcome = retry_outcome
        finally:
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(signal.SIGINT)

        _print_summary(wizard, outcome)
        if outcome.cancelled:
            raise typer.Exit(EXIT_CANCELLED)

    except SessionImportError as e:
        typer.echo()
        typer.secho(f'Error: {e}', fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except typer.Exit:
        raise
    except Exception as e:
        await logger.error(f'Failed to import sessions: {e}')
        if verbose:
            traceback.print_exc()
        raise typer.Exit(1)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == '__main__':
    main()
