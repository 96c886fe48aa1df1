# codesync/cli/commands/sync.py
"""
Sync command.

Usage:
    codesync sync               # Sync the current directory
    codesync sync ./repo        # Sync another codebase
    codesync sync --force       # Re-index every file
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
from codesync.ingest.sync.status import SyncOptions, SyncReport

_POLL_INTERVAL = 0.1


def _show_report(report: SyncReport) -> None:
    lines = [
        f"Scanned:    {report.scanned} files ({report.unchanged} unchanged)",
        f"Added:      {report.added}",
        f"Modified:   {report.modified}",
        f"Removed:    {report.removed}",
        f"Chunks:     +{report.chunks_added} / -{report.chunks_deleted}",
        f"Duration:   {report.duration_seconds:.1f}s",
    ]
    style = "green" if report.ok else "yellow"
    ui.summary_panel("\n".join(lines), title=report.status.value, style=style)

    for path, reason in report.scan_errors:
        ui.warning(f"Skipped {path}", reason)

    if report.failures:
        ui.table(
            ["File", "Stage", "Error"],
            [[f.path, f.stage, f.error] for f in report.failures],
            title="Failed files",
        )
        ui.info("Run 'codesync sync' again to retry failed files.")


def command(
    path: Path = typer.Argument(Path("."), help="Codebase root to sync."),
    force: bool = typer.Option(False, "--force", "-f", help="Re-index every file."),
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Sync a codebase into its vector store collection.

    Only files whose content changed since the last sync are re-embedded;
    removed files have their chunks deleted.
    """
    with friendly_errors():
        ctx = CLIContext.load(config, verbose=verbose)
        with closing(ctx.orchestrator()) as orchestrator:
            ui.header("codesync sync", str(path.resolve()))
            ui.info(f"Embedding: {ctx.embedding_display}  Vector DB: {ctx.vector_db_display}")

            run = orchestrator.start_sync(path, SyncOptions(force=force))
            try:
                with ui.progress("Syncing") as update:
                    while True:
                        try:
                            run.wait(timeout=_POLL_INTERVAL)
                            break
                        except TimeoutError:
                            processed, total = run.progress
                            update(processed, total or None)
            except KeyboardInterrupt:
                ui.warning("Cancelling after the current batch...")
                run.cancel()
                run.wait()

            report = run.wait(raise_on_error=True)
            _show_report(report)

            if report.status is RunStatus.INTERRUPTED:
                ui.warning("Sync interrupted; run it again to resume.")
                raise typer.Exit(1)
            if report.failures:
                raise typer.Exit(1)
            ui.success(f"Synced {report.root}")
