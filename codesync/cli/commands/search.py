# codesync/cli/commands/search.py
"""
Search command.

Usage:
    codesync search "parse config"
    codesync search "retry" --path ./repo --limit 5 --ext .py
"""

from __future__ import annotations

from contextlib import closing
from pathlib import Path
from typing import Optional

import typer

from codesync.cli.context import CLIContext
from codesync.cli.ui import ui
from codesync.cli.utils import CONFIG_OPTION, VERBOSE_OPTION, friendly_errors
from codesync.vector_db.base import Filter


def command(
    query: str = typer.Argument(..., help="Text to search for."),
    path: Path = typer.Option(Path("."), "--path", "-p", help="Codebase root."),
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Maximum results."),
    ext: Optional[str] = typer.Option(None, "--ext", help="Only this file extension."),
    language: Optional[str] = typer.Option(None, "--language", help="Only this language."),
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Search a synced codebase."""
    with friendly_errors():
        ctx = CLIContext.load(config, verbose=verbose)
        if ext and not ext.startswith("."):
            ext = f".{ext}"
        filter = Filter.where(file_extension=ext, language=language)

        with closing(ctx.orchestrator()) as orchestrator:
            hits = orchestrator.search(path, query, limit=limit, filter=filter or None)
        if not hits:
            ui.info("No results. Has this codebase been synced?")
            return

        ui.table(
            ["Score", "Location", "Language"],
            [
                [
                    f"{hit.score:.3f}" if hit.score is not None else "-",
                    f"{hit.payload.get('relative_path')}:"
                    f"{hit.payload.get('start_line')}-{hit.payload.get('end_line')}",
                    str(hit.payload.get("language", "")),
                ]
                for hit in hits
            ],
            title=f"Results for '{query}'",
        )
