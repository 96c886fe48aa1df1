# codesync/cli/commands/status.py
"""
Status command.

Usage:
    codesync status             # Status of the current directory
    codesync status ./repo
"""

from __future__ import annotations

from contextlib import closing
from pathlib import Path
from typing import Optional

import typer

from codesync.cli.context import CLIContext
from codesync.cli.ui import ui
from codesync.cli.utils import CONFIG_OPTION, VERBOSE_OPTION, friendly_errors
from codesync.ingest.state.schema import RunStatus


def command(
    path: Path = typer.Argument(Path("."), help="Codebase root."),
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show the index status of a codebase."""
    with friendly_errors():
        ctx = CLIContext.load(config, verbose=verbose)
        with closing(ctx.orchestrator()) as orchestrator:
            status = orchestrator.get_sync_status(path)

        ui.header("codesync status", status.root)
        last_sync = status.last_sync_at.isoformat(timespec="seconds") if status.last_sync_at else "never"
        ui.table(
            ["Field", "Value"],
            [
                ["Status", str(status)],
                ["Collection", status.collection],
                ["Files", str(status.files)],
                ["Chunks", str(status.chunks)],
                ["Last sync", last_sync],
                ["Progress", f"{status.processed}/{status.total}"],
            ],
        )

        for failure in status.failures:
            ui.status(failure.path, False, f"{failure.stage}: {failure.error}")

        if status.status is RunStatus.NOT_STARTED:
            ui.info("Not indexed yet. Run 'codesync sync' first.")
