# codesync/cli/ui/progress.py
"""Progress bars."""

from __future__ import annotations

from typing import Optional

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from codesync.cli.ui.console import console


class RichProgress:
    """
    Progress bar whose total may only be known after it started.

    The context value is an update callable: update(completed, total).
    """

    def __init__(self, description: str, total: Optional[int] = None):
        self.description = description
        self.total = total
        self.progress: Optional[Progress] = None
        self.task = None

    def __enter__(self):
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )
        self.progress.__enter__()
        self.task = self.progress.add_task(self.description, total=self.total)
        return self._update

    def _update(self, completed: int, total: Optional[int] = None) -> None:
        if total is not None:
            self.progress.update(self.task, completed=completed, total=total)
        else:
            self.progress.update(self.task, completed=completed)

    def __exit__(self, *args):
        self.progress.__exit__(*args)


class ProgressMixin:
    """Mixin providing progress methods for the UI class."""

    def progress(self, description: str = "Working...", total: Optional[int] = None):
        """
        Create a progress context manager.

        Usage:
            with ui.progress("Syncing") as update:
                update(processed, total)
        """
        return RichProgress(description, total)


__all__ = ["ProgressMixin", "RichProgress"]
