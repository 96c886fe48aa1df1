# tests/test_config.py
"""
Tests for codesync.core.config.
"""

import pytest
from pydantic import ValidationError

from codesync.core.config import (
    ChunkingConfig,
    CodeSyncConfig,
    ScanConfig,
    load_config,
    load_config_dict,
)
from codesync.core.exceptions import ConfigError, ConfigNotFoundError
from codesync.core.paths import CodeSyncPaths
from codesync.vector_db.base import VectorDBKind


class TestDefaults:
    """The packaged default.yaml."""

    def test_defaults_load_and_validate(self):
        config = load_config()

        assert config.embedding.plugin_name == "local"
        assert config.embedding.kwargs == {"dim": 384}
        assert config.vector_db.kind is VectorDBKind.QDRANT
        assert config.scan.trust_mtime is False
        assert config.sync.batch_size == 32
        assert config.sync.retry.max_attempts == 3

    def test_defaults_match_schema_defaults(self):
        """default.yaml and the pydantic defaults describe the same config."""
        from_file = load_config()
        from_schema = CodeSyncConfig()

        assert from_file.sync == from_schema.sync
        assert from_file.chunking == from_schema.chunking
        assert from_file.scan == from_schema.scan
        assert from_file.vector_db == from_schema.vector_db


class TestUserConfig:
    """Merging a user file over the defaults."""

    def test_user_values_override_and_nested_dicts_merge(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sync:\n  max_workers: 8\n  retry:\n    max_attempts: 5\n")

        config = load_config(path)

        assert config.sync.max_workers == 8
        assert config.sync.batch_size == 32
        assert config.sync.retry.max_attempts == 5
        assert config.sync.retry.base_delay == 0.5

    def test_home_config_is_picked_up(self, codesync_home):
        CodeSyncPaths.config().write_text("vector_db:\n  kind: memory\n")

        config = load_config()

        assert config.vector_db.kind is VectorDBKind.MEMORY

    def test_env_placeholders_are_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CODESYNC_TEST_QDRANT", "qdrant.internal")
        path = tmp_path / "config.yaml"
        path.write_text("vector_db:\n  kind: qdrant\n  kwargs:\n    host: ${CODESYNC_TEST_QDRANT}\n")

        config = load_config(path)

        assert config.vector_db.kwargs["host"] == "qdrant.internal"

    def test_unknown_key_is_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sync:\n  workers: 8\n")

        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sync: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config_dict(path)

    def test_root_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            load_config_dict(path)


class TestSchema:
    """Field validation."""

    def test_extensions_are_normalized(self):
        scan = ScanConfig(extensions=["TS", ".Py", " vue "])
        assert scan.extensions == [".ts", ".py", ".vue"]

    def test_overlap_must_be_smaller_than_window(self):
        with pytest.raises(ValidationError):
            ChunkingConfig(chunk_lines=10, overlap_lines=10)

    def test_from_dict(self):
        config = CodeSyncConfig.from_dict(
            {
                "embedding": {"plugin_name": "local", "kwargs": {"dim": 8}},
                "vector_db": {"kind": "memory"},
            }
        )
        assert config.embedding.kwargs["dim"] == 8
        assert config.vector_db.kind is VectorDBKind.MEMORY

    def test_unknown_vector_db_kind_is_rejected(self):
        with pytest.raises(ValidationError):
            CodeSyncConfig.from_dict({"vector_db": {"kind": "faiss"}})
