"""Tests for the resolver module."""

import os
import tempfile
from pathlib import Path

import pytest

from envlens.resolver import FileResolver, _scan_directory, sort_env_files, env_suffix


def _make_files(directory, names):
    for name in names:
        Path(directory, name).write_text("KEY=value\n")


class CountingScanner:
    """Scanner that records how often the filesystem is scanned."""

    def __init__(self):
        self.calls = 0

    def __call__(self, path):
        self.calls += 1
        return _scan_directory(path)


class TestScanDirectory:
    """Test directory scanning."""

    def test_filters_to_env_files(self):
        """Test that only .env and .env.<suffix> files are returned."""
        with tempfile.TemporaryDirectory() as tmp:
            _make_files(tmp, [".env", ".env.local", ".env.production", ".envrc", ".env.a.b", "env", "app.env"])
            os.mkdir(os.path.join(tmp, ".env.dir"))

            names = sorted(os.path.basename(p) for p in _scan_directory(tmp))
            assert names == [".env", ".env.local", ".env.production"]

    def test_not_recursive(self):
        """Test that subdirectories are not scanned."""
        with tempfile.TemporaryDirectory() as tmp:
            os.mkdir(os.path.join(tmp, "nested"))
            _make_files(os.path.join(tmp, "nested"), [".env"])
            assert _scan_directory(tmp) == []

    def test_missing_directory(self):
        """Test that a missing directory yields no files."""
        assert _scan_directory("/nonexistent/envlens/dir") == []

    def test_paths_are_absolute(self):
        """Test that returned paths are absolute."""
        with tempfile.TemporaryDirectory() as tmp:
            _make_files(tmp, [".env"])
            for path in _scan_directory(tmp):
                assert os.path.isabs(path)


class TestSortEnvFiles:
    """Test the priority comparator."""

    def test_preferred_environment_first(self):
        """Test the preferred file, then .env, then lexicographic order."""
        files = ["/w/.env", "/w/.env.production", "/w/.env.local"]
        assert sort_env_files(files, "production") == ["/w/.env.production", "/w/.env", "/w/.env.local"]

    def test_bare_env_first_without_preference(self):
        """Test that .env leads when no environment is preferred."""
        files = ["/w/.env.b", "/w/.env.a", "/w/.env"]
        assert sort_env_files(files) == ["/w/.env", "/w/.env.a", "/w/.env.b"]

    def test_unknown_preference(self):
        """Test a preferred environment without a matching file."""
        files = ["/w/.env.local", "/w/.env"]
        assert sort_env_files(files, "staging") == ["/w/.env", "/w/.env.local"]

    def test_no_duplicates(self):
        """Test that duplicate paths are collapsed."""
        assert sort_env_files(["/w/.env", "/w/.env"]) == ["/w/.env"]

    def test_env_suffix(self):
        """Test suffix extraction."""
        assert env_suffix("/w/.env.staging") == "staging"
        assert env_suffix(".env") == ""
        assert env_suffix("/w/.envrc") is None


class TestFileResolver:
    """Test resolution and caching."""

    def test_find_env_files_order(self):
        """Test resolution in priority order on a real directory."""
        with tempfile.TemporaryDirectory() as tmp:
            _make_files(tmp, [".env", ".env.production", ".env.local"])
            resolver = FileResolver()

            files = resolver.find_env_files(tmp, "production")
            assert [os.path.basename(f) for f in files] == [".env.production", ".env", ".env.local"]

    def test_empty_directory(self):
        """Test that no matches yield an empty list."""
        with tempfile.TemporaryDirectory() as tmp:
            assert FileResolver().find_env_files(tmp) == []

    def test_identical_requests_use_cache(self):
        """Test that a repeated request does not rescan."""
        with tempfile.TemporaryDirectory() as tmp:
            _make_files(tmp, [".env"])
            scanner = CountingScanner()
            resolver = FileResolver(scanner=scanner)

            first = resolver.find_env_files(tmp, "")
            second = resolver.find_env_files(tmp, "")
            assert first == second
            assert scanner.calls == 1

    def test_changed_preference_rescans(self):
        """Test that changing the preferred environment rescans."""
        with tempfile.TemporaryDirectory() as tmp:
            _make_files(tmp, [".env", ".env.local"])
            scanner = CountingScanner()
            resolver = FileResolver(scanner=scanner)

            resolver.find_env_files(tmp, "")
            files = resolver.find_env_files(tmp, "local")
            assert scanner.calls == 2
            assert os.path.basename(files[0]) == ".env.local"

    def test_changed_path_rescans(self):
        """Test that changing the directory rescans."""
        with tempfile.TemporaryDirectory() as tmp1, tempfile.TemporaryDirectory() as tmp2:
            scanner = CountingScanner()
            resolver = FileResolver(scanner=scanner)

            resolver.find_env_files(tmp1)
            resolver.find_env_files(tmp2)
            resolver.find_env_files(tmp2)
            assert scanner.calls == 2

    def test_cache_ignores_disk_changes(self):
        """Test that new files are only seen after invalidation."""
        with tempfile.TemporaryDirectory() as tmp:
            resolver = FileResolver()
            assert resolver.find_env_files(tmp) == []

            _make_files(tmp, [".env"])
            assert resolver.find_env_files(tmp) == []

            resolver.invalidate()
            assert not resolver.cached
            assert len(resolver.find_env_files(tmp)) == 1

    def test_returned_list_is_a_copy(self):
        """Test that callers cannot mutate the cached list."""
        with tempfile.TemporaryDirectory() as tmp:
            _make_files(tmp, [".env"])
            resolver = FileResolver()
            files = resolver.find_env_files(tmp)
            files.clear()
            assert len(resolver.find_env_files(tmp)) == 1

    def test_defaults_to_cwd(self, monkeypatch):
        """Test that the current directory is scanned by default."""
        with tempfile.TemporaryDirectory() as tmp:
            _make_files(tmp, [".env"])
            monkeypatch.chdir(tmp)
            files = FileResolver().find_env_files()
            assert [os.path.basename(f) for f in files] == [".env"]
