"""
Terminal implementation of LoggerProtocol for the session-import CLI.

Info lines go to stdout only in verbose mode; warnings and errors always go
to stderr, colored so they stand out from the progress line.
"""

from __future__ import annotations

import typer


class CLILogger:
    """Wizard-facing logger that writes through typer."""

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    async def info(self, message: str) -> None:
        if self.verbose:
            typer.secho(f'  {message}', fg=typer.colors.BRIGHT_BLACK)

    async def warning(self, message: str) -> None:
        typer.secho(f'Warning: {message}', fg=typer.colors.YELLOW, err=True)

    async def error(self, message: str) -> None:
        typer.secho(f'Error: {message}', fg=typer.colors.RED, err=True)
