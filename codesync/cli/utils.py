# codesync/cli/utils.py
"""
Shared CLI utilities.

Common options and error handling used across commands.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer

from codesync.cli.ui import ui
from codesync.core.exceptions import (
    CodeSyncError,
    ConfigError,
    ConfigNotFoundError,
    SyncInProgressError,
)
from codesync.logging.logger import get_logger
from codesync.logging.tags import CLI

logger = get_logger(__name__)

CONFIG_OPTION: Optional[Path] = typer.Option(
    None,
    "--config",
    "-c",
    help="Config file (default: CODESYNC_HOME/config.yaml if present).",
)

VERBOSE_OPTION: bool = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Enable debug logging.",
)


@contextmanager
def friendly_errors() -> Iterator[None]:
    """Turn codesync errors into a one-line message and exit code 1."""
    try:
        yield
    except ConfigNotFoundError as e:
        ui.error(str(e))
        raise typer.Exit(1)
    except ConfigError as e:
        ui.error(f"Configuration error: {e}")
        raise typer.Exit(1)
    except SyncInProgressError as e:
        ui.error(str(e))
        ui.info("Wait for it to finish, then try again.")
        raise typer.Exit(1)
    except CodeSyncError as e:
        logger.debug(f"{CLI} Command failed", exc_info=True)
        ui.error(str(e))
        raise typer.Exit(1)


__all__ = ["CONFIG_OPTION", "VERBOSE_OPTION", "friendly_errors"]
