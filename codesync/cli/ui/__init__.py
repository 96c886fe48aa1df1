# codesync/cli/ui/__init__.py
"""
CLI UI components.

Usage:
    from codesync.cli.ui import ui

    ui.header("codesync sync", "/path/to/repo")
    ui.success("Done!")
"""

from __future__ import annotations

from codesync.cli.ui.console import console
from codesync.cli.ui.output import OutputMixin
from codesync.cli.ui.progress import ProgressMixin


class UI(OutputMixin, ProgressMixin):
    """Unified UI helpers on top of Rich."""


ui = UI()

__all__ = ["ui", "UI", "console"]
