# tests/test_ignore.py
"""
Tests for codesync.ingest.diff.ignore.
"""

from codesync.core.paths import CodeSyncPaths
from codesync.ingest.diff.ignore import IGNORE_FILE_NAME, IgnoreRules, read_ignore_file


class TestDefaultRules:
    """Built-in patterns and extension allow-list."""

    def test_dependency_and_vcs_dirs_are_skipped(self):
        rules = IgnoreRules()

        assert rules("node_modules/")
        assert rules("packages/web/node_modules/")
        assert rules(".git/")
        assert rules("src/__pycache__/")

    def test_source_files_are_kept(self):
        rules = IgnoreRules()

        assert not rules("src/")
        assert not rules("src/app.ts")
        assert not rules("lib/util.py")
        assert not rules("README.md")

    def test_bundles_and_logs_are_skipped(self):
        rules = IgnoreRules()

        assert rules("static/app.min.js")
        assert rules("debug.log")
        assert rules(".env")

    def test_unknown_extension_is_skipped(self):
        rules = IgnoreRules()

        assert rules("notes.txt")
        assert rules("Makefile")

    def test_extension_filter_can_be_disabled(self):
        rules = IgnoreRules(patterns=[], extensions=None)

        assert not rules("notes.txt")


class TestPatternSyntax:
    """Segment, path and basename patterns."""

    def test_trailing_slash_matches_any_directory_segment(self):
        rules = IgnoreRules(["fixtures/"], extensions=None)

        assert rules("fixtures/")
        assert rules("tests/fixtures/")
        assert rules("tests/fixtures/data.ts")
        assert not rules("fixtures.ts")

    def test_pattern_with_slash_matches_whole_path(self):
        rules = IgnoreRules(["generated/**"], extensions=None)

        assert rules("generated/")
        assert rules("generated/api/client.ts")
        assert not rules("src/generated/")

    def test_leading_slash_is_anchored_to_root(self):
        rules = IgnoreRules(["/build_output/*"], extensions=None)

        assert rules("build_output/x.ts")
        assert not rules("src/build_output/x.ts")

    def test_basename_glob(self):
        rules = IgnoreRules(["*.spec.ts"])

        assert rules("src/deep/app.spec.ts")
        assert not rules("src/deep/app.ts")


class TestForRoot:
    """Rules assembled from config, env and ignore files."""

    def test_reads_root_ignore_file(self, tmp_path):
        (tmp_path / IGNORE_FILE_NAME).write_text("# comment\n\nsecret/\n*.gen.ts\n")

        rules = IgnoreRules.for_root(tmp_path)

        assert rules("secret/")
        assert rules("src/api.gen.ts")
        assert not rules("src/api.ts")

    def test_ignore_files_can_be_disabled(self, tmp_path):
        (tmp_path / IGNORE_FILE_NAME).write_text("secret/\n")

        rules = IgnoreRules.for_root(tmp_path, use_ignore_files=False)

        assert not rules("secret/")

    def test_reads_global_ignore_file(self, tmp_path):
        CodeSyncPaths.global_ignore_file().write_text("vendor/\n")

        rules = IgnoreRules.for_root(tmp_path)

        assert rules("third_party/vendor/")

    def test_env_patterns_and_extensions(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CODESYNC_CUSTOM_IGNORE_PATTERNS", "legacy/, *.test.ts")
        monkeypatch.setenv("CODESYNC_CUSTOM_EXTENSIONS", "txt,.vue")

        rules = IgnoreRules.for_root(tmp_path)

        assert rules("legacy/")
        assert rules("a.test.ts")
        assert not rules("notes.txt")
        assert not rules("App.vue")

    def test_config_patterns_and_extensions(self, tmp_path):
        rules = IgnoreRules.for_root(
            tmp_path,
            extra_patterns=["scripts/"],
            extra_extensions=[".sql"],
        )

        assert rules("scripts/")
        assert not rules("db/schema.sql")

    def test_patterns_are_deduplicated(self):
        rules = IgnoreRules(["dist", "dist", " dist "])
        assert rules.patterns == ["dist"]


def test_read_ignore_file_missing(tmp_path):
    assert read_ignore_file(tmp_path / "missing") == []
