"""
Main codesync CLI module.

Provides the top-level `codesync` command.
"""

from codesync.cli.cli import app

__all__ = ["app"]
