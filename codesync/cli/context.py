# codesync/cli/context.py
"""
Central CLI context - single source of truth for all CLI commands.

All configuration reading happens here. Commands build a CLIContext and ask
it for the orchestrator instead of wiring plugins themselves.

Usage:
    from codesync.cli.context import CLIContext

    ctx = CLIContext.load(config_path)
    orchestrator = ctx.orchestrator()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from codesync.core.config import CodeSyncConfig, load_config
from codesync.core.paths import CodeSyncPaths
from codesync.ingest.sync.orchestrator import SyncOrchestrator
from codesync.logging.logger import configure_logging, get_logger
from codesync.logging.tags import CLI

logger = get_logger(__name__)


@dataclass
class CLIContext:
    """Resolved configuration plus the path it came from (None: defaults only)."""

    config: CodeSyncConfig = field(repr=False)
    config_path: Optional[Path] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None, *, verbose: bool = False) -> "CLIContext":
        """
        Load configuration and set up logging.

        Raises:
            ConfigError: the config file is missing or invalid.
        """
        config = load_config(config_path)
        level = "DEBUG" if verbose else config.logging.level
        configure_logging(level)

        if config_path is None and CodeSyncPaths.config().exists():
            config_path = CodeSyncPaths.config()
        logger.debug(f"{CLI} Using config {config_path or 'defaults'}")
        return cls(config=config, config_path=config_path)

    def orchestrator(self) -> SyncOrchestrator:
        return SyncOrchestrator.from_config(self.config)

    # -------------------------------------------------------------------------
    # Display Properties (formatted strings for UI)
    # -------------------------------------------------------------------------

    @property
    def embedding_display(self) -> str:
        emb = self.config.embedding
        model = emb.kwargs.get("model")
        return f"{emb.plugin_name} ({model})" if model else emb.plugin_name

    @property
    def vector_db_display(self) -> str:
        vdb = self.config.vector_db
        target = next(
            (vdb.kwargs[key] for key in ("path", "url", "host", "location") if vdb.kwargs.get(key)),
            None,
        )
        return f"{vdb.kind.value} ({target})" if target else vdb.kind.value

    @property
    def snapshots_display(self) -> str:
        return str(CodeSyncPaths.snapshots(self.config.sync.data_dir))


__all__ = ["CLIContext"]
