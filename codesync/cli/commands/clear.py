# codesync/cli/commands/clear.py
"""
Clear command.

Usage:
    codesync clear ./repo       # Asks for confirmation
    codesync clear ./repo -y
"""

from __future__ import annotations

from contextlib import closing
from pathlib import Path
from typing import Optional

import typer

from codesync.cli.context import CLIContext
from codesync.cli.ui import ui
from codesync.cli.utils import CONFIG_OPTION, VERBOSE_OPTION, friendly_errors


def command(
    path: Path = typer.Argument(Path("."), help="Codebase root."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Drop the collection and snapshot of a codebase."""
    with friendly_errors():
        ctx = CLIContext.load(config, verbose=verbose)
        root = path.resolve()

        if not yes and not typer.confirm(f"Delete the index for {root}?"):
            ui.info("Aborted.")
            raise typer.Exit(0)

        with closing(ctx.orchestrator()) as orchestrator:
            cleared = orchestrator.clear_index(root)
        if cleared:
            ui.success(f"Cleared index for {root}")
        else:
            ui.info(f"Nothing indexed for {root}")
