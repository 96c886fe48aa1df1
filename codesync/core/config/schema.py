# codesync/core/config/schema.py
"""
Pydantic schema for codesync configuration.

Rules:
- Strict validation
- No unknown keys
- Every section has defaults, so an empty user file is valid

Schema hierarchy:
- CodeSyncConfig: the full config consumed by SyncOrchestrator.from_config
- PluginConfig: embedding block
- VectorDBConfig: vector store block (explicit backend kind)
- ScanConfig / ChunkingConfig / SyncConfig / RetryConfig / LoggingConfig
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from codesync.vector_db.base import VectorDBKind


class PluginConfig(BaseModel):
    """
    Generic plugin configuration block.

    Examples:
        >>> PluginConfig(plugin_name="openai", kwargs={"model": "text-embedding-3-small"})
    """

    plugin_name: str = Field(..., description="Plugin name in the registry")
    kwargs: dict[str, Any] = Field(default_factory=dict, description="Plugin init kwargs")

    model_config = ConfigDict(extra="forbid")


class VectorDBConfig(BaseModel):
    """
    Vector store selection.

    The backend is named explicitly; it is never inferred from a client object.
    The default is embedded on-disk Qdrant so an index outlives the process.
    """

    kind: VectorDBKind = Field(default=VectorDBKind.QDRANT, description="Backend kind")
    kwargs: dict[str, Any] = Field(default_factory=dict, description="Backend init kwargs")

    model_config = ConfigDict(extra="forbid")


class ScanConfig(BaseModel):
    """Which files the scanner considers."""

    extensions: list[str] = Field(
        default_factory=list,
        description="Extensions added to the default allow-list",
    )
    ignore_patterns: list[str] = Field(
        default_factory=list,
        description="Patterns added to the default ignore list",
    )
    use_ignore_files: bool = Field(
        default=True,
        description="Read <root>/.contextignore and the global ignore file",
    )
    trust_mtime: bool = Field(
        default=False,
        description="Reuse the previous hash when size and mtime are unchanged",
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("extensions", mode="before")
    @classmethod
    def normalize_extensions(cls, v: Any) -> Any:
        """Ensure all extensions start with a dot and are lowercase."""
        if not isinstance(v, list):
            return v
        normalized = []
        for ext in v:
            ext = str(ext).strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        return normalized


class ChunkingConfig(BaseModel):
    """Line-window chunker settings."""

    chunk_lines: int = Field(default=60, ge=1)
    overlap_lines: int = Field(default=10, ge=0)
    max_chars: int = Field(default=2500, ge=1)

    model_config = ConfigDict(extra="forbid")

    @field_validator("overlap_lines")
    @classmethod
    def overlap_smaller_than_window(cls, v: int, info) -> int:
        chunk_lines = info.data.get("chunk_lines")
        if chunk_lines is not None and v >= chunk_lines:
            raise ValueError(f"overlap_lines ({v}) must be < chunk_lines ({chunk_lines})")
        return v


class RetryConfig(BaseModel):
    """Retry policy for embedding and vector store calls."""

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=0.5, ge=0)
    max_delay: float = Field(default=8.0, ge=0)
    jitter: bool = True
    timeout: float | None = Field(default=60.0, gt=0, description="Per-call timeout in seconds")

    model_config = ConfigDict(extra="forbid")


class SyncConfig(BaseModel):
    """Orchestrator batching and concurrency."""

    batch_size: int = Field(default=32, ge=1, description="Files per batch")
    max_workers: int = Field(default=4, ge=1, description="Files processed in parallel")
    embedding_batch_size: int = Field(default=64, ge=1, description="Texts per embed call")
    upsert_batch_size: int = Field(default=100, ge=1, description="Points per upsert call")
    data_dir: str | None = Field(
        default=None, description="Where snapshots live (default: CODESYNC_HOME)"
    )
    retry: RetryConfig = Field(default_factory=RetryConfig)

    model_config = ConfigDict(extra="forbid")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"

    model_config = ConfigDict(extra="forbid")


class CodeSyncConfig(BaseModel):
    """
    Complete codesync configuration.

    Examples:
        >>> config = CodeSyncConfig.from_dict({
        ...     "embedding": {"plugin_name": "local", "kwargs": {"dim": 64}},
        ...     "vector_db": {"kind": "qdrant", "kwargs": {"host": "localhost"}},
        ...     "sync": {"max_workers": 8},
        ... })
    """

    embedding: PluginConfig = Field(
        default_factory=lambda: PluginConfig(plugin_name="local"),
        description="Embedding plugin configuration",
    )
    vector_db: VectorDBConfig = Field(default_factory=VectorDBConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_dict(cls, data: dict) -> "CodeSyncConfig":
        return cls.model_validate(data)


__all__ = [
    "PluginConfig",
    "VectorDBConfig",
    "ScanConfig",
    "ChunkingConfig",
    "RetryConfig",
    "SyncConfig",
    "LoggingConfig",
    "CodeSyncConfig",
]
