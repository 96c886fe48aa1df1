# codesync/cli/commands/__init__.py
"""CLI commands."""

from codesync.cli.commands import clear, config, search, status, sync

__all__ = ["clear", "config", "search", "status", "sync"]
