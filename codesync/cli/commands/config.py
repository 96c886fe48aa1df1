# codesync/cli/commands/config.py
"""
Config commands.

Usage:
    codesync config show
    codesync config show --json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
import yaml

from codesync.cli.context import CLIContext
from codesync.cli.ui import ui
from codesync.cli.utils import CONFIG_OPTION, friendly_errors


def show(
    config: Optional[Path] = CONFIG_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of YAML."),
) -> None:
    """Display the resolved configuration (defaults merged with the user file)."""
    with friendly_errors():
        ctx = CLIContext.load(config)
        data = ctx.config.model_dump(mode="json")

        if as_json:
            typer.echo(json.dumps(data, indent=2))
            return

        ui.info(f"Config: {ctx.config_path or 'defaults'}")
        ui.info(f"Snapshots: {ctx.snapshots_display}")
        ui.syntax(yaml.safe_dump(data, sort_keys=False), "yaml")
