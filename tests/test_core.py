"""Tests for the core module."""

import logging
import os
import tempfile
from pathlib import Path

import pytest

import envlens.core as core
from envlens.core import EnvSession, EnvStore, _parse_line, _load_single_file
from envlens.resolver import FileResolver, _scan_directory
from envlens._types import EnvVarEntry


def _write(directory, name, content):
    path = Path(directory, name)
    path.write_text(content)
    return str(path)


class TestParseLine:
    """Test line parsing functionality."""

    def test_parse_basic_key_value(self):
        """Test parsing basic key=value pairs."""
        assert _parse_line("KEY=value") == ("KEY", "value")

    def test_parse_with_spaces(self):
        """Test parsing with spaces around equals sign."""
        assert _parse_line(" KEY = value ") == ("KEY", "value")

    def test_parse_quoted_value(self):
        """Test that one layer of matching quotes is removed."""
        assert _parse_line('KEY="abc"') == ("KEY", "abc")
        assert _parse_line("KEY='single quoted'") == ("KEY", "single quoted")
        assert _parse_line('KEY="\'inner\'"') == ("KEY", "'inner'")

    def test_parse_unbalanced_quotes(self):
        """Test that unbalanced or mixed quotes are kept."""
        assert _parse_line('KEY="abc') == ("KEY", '"abc')
        assert _parse_line("KEY=\"abc'") == ("KEY", "\"abc'")

    def test_split_on_first_equals(self):
        """Test that values may contain '='."""
        assert _parse_line("URL=postgres://db/app?sslmode=require") == (
            "URL", "postgres://db/app?sslmode=require"
        )

    def test_parse_comment(self):
        """Test parsing comment lines."""
        assert _parse_line("# This is a comment") is None
        assert _parse_line("#KEY=value") is None

    def test_parse_blank_line(self):
        """Test parsing blank lines."""
        assert _parse_line("") is None
        assert _parse_line("   ") is None

    def test_parse_invalid_lines(self):
        """Test that lines without key, value or '=' are skipped."""
        assert _parse_line("INVALID_LINE") is None
        assert _parse_line("=value") is None
        assert _parse_line("KEY=") is None


class TestLoadSingleFile:
    """Test single-file parsing."""

    def test_provisional_types(self):
        """Test that values are pre-classified as number or string."""
        with tempfile.TemporaryDirectory() as tmp:
            path = _write(tmp, ".env", "PORT=8080\nHOST=localhost\nDEBUG=true\nRATIO=-0.5\n")
            entries = _load_single_file(path)

            assert entries["PORT"] == EnvVarEntry("8080", "number", path)
            assert entries["HOST"].type == "string"
            assert entries["DEBUG"].type == "string"
            assert entries["RATIO"].type == "number"

    def test_later_line_wins_within_file(self):
        """Test duplicate keys inside one file."""
        with tempfile.TemporaryDirectory() as tmp:
            path = _write(tmp, ".env", "KEY=first\nKEY=second\n")
            assert _load_single_file(path)["KEY"].value == "second"

    def test_missing_file(self):
        """Test that a vanished file contributes nothing."""
        assert _load_single_file("/nonexistent/.env") == {}


class TestEnvStore:
    """Test the variable store."""

    def test_load_merges_files(self):
        """Test loading variables from every resolved file."""
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, ".env", "A=1\nSHARED=base\n")
            _write(tmp, ".env.local", "B=2\nSHARED=local\n")
            store = EnvStore()

            env_vars = store.load(tmp)
            assert env_vars["A"].value == "1"
            assert env_vars["B"].value == "2"
            assert env_vars["SHARED"].value == "base"
            assert os.path.basename(env_vars["SHARED"].source) == ".env"

    def test_highest_priority_file_wins(self):
        """Test that the preferred file beats .env for the same key."""
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, ".env", "FOO=1\n")
            _write(tmp, ".env.production", "FOO=2\n")
            store = EnvStore()

            env_vars = store.load(tmp, "production")
            assert env_vars["FOO"].value == "2"
            assert os.path.basename(env_vars["FOO"].source) == ".env.production"

    def test_load_is_noop_when_populated(self):
        """Test that an unforced load keeps stale data."""
        with tempfile.TemporaryDirectory() as tmp:
            path = _write(tmp, ".env", "KEY=old\n")
            store = EnvStore()
            store.load(tmp)

            Path(path).write_text("KEY=new\n")
            assert store.load(tmp)["KEY"].value == "old"
            assert store.load(tmp, force=True)["KEY"].value == "new"

    def test_empty_mapping_reloads(self):
        """Test that an empty mapping is re-parsed on the next load."""
        with tempfile.TemporaryDirectory() as tmp:
            path = _write(tmp, ".env", "# nothing yet\n")
            store = EnvStore()
            assert store.load(tmp) == {}

            Path(path).write_text("KEY=value\n")
            assert store.load(tmp)["KEY"].value == "value"

    def test_refresh_rescans(self):
        """Test that refresh drops the resolver cache as well."""
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, ".env", "A=1\n")
            calls = []

            def scanner(path):
                calls.append(path)
                return _scan_directory(path)

            store = EnvStore(FileResolver(scanner=scanner))
            store.load(tmp)
            _write(tmp, ".env.local", "B=2\n")
            store.load(tmp, force=True)
            assert "B" not in store
            assert len(calls) == 1

            env_vars = store.refresh(tmp)
            assert env_vars["B"].value == "2"
            assert len(calls) == 2

    def test_mark_stale(self):
        """Test that a stale store re-resolves on the next load."""
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, ".env", "A=1\n")
            store = EnvStore()
            store.load(tmp)
            _write(tmp, ".env.local", "B=2\n")

            store.mark_stale()
            assert store.stale
            assert store.load(tmp)["B"].value == "2"
            assert not store.stale

    def test_change_during_load_stays_pending(self):
        """Test that a change notified while loading survives the load."""
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, ".env", "A=1\n")
            store = None

            def scanner(path):
                store.mark_stale()
                return _scan_directory(path)

            store = EnvStore(FileResolver(scanner=scanner))
            store.mark_stale()
            store.load(tmp)
            assert store.stale
            assert store.get("A").value == "1"

    def test_snapshot_is_a_copy(self):
        """Test that callers cannot mutate the store through snapshots."""
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, ".env", "A=1\n")
            store = EnvStore()
            store.load(tmp).clear()
            assert len(store) == 1
            assert store.get("A").value == "1"

    def test_no_files(self):
        """Test loading a directory without environment files."""
        with tempfile.TemporaryDirectory() as tmp:
            assert EnvStore().load(tmp) == {}


class TestEnvSession:
    """Test the session object."""

    def test_setup_loads(self):
        """Test that setup parses files immediately."""
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, ".env", "PORT=8080\n")
            session = EnvSession(path=tmp)
            assert "PORT" in session.store
            assert session.get_env_vars()["PORT"].type == "number"

    def test_setup_without_load(self):
        """Test deferring the initial load."""
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, ".env", "PORT=8080\n")
            session = EnvSession(path=tmp, load=False)
            assert len(session.store) == 0
            assert "PORT" in session.get_env_vars()

    def test_setup_replaces_previous_state(self):
        """Test that reconfiguring switches directories and types."""
        with tempfile.TemporaryDirectory() as tmp1, tempfile.TemporaryDirectory() as tmp2:
            _write(tmp1, ".env", "ONE=1\n")
            _write(tmp2, ".env", "TWO=2\n")
            session = EnvSession(path=tmp1)
            session.setup(path=tmp2, types=False)

            env_vars = session.get_env_vars()
            assert "ONE" not in env_vars
            assert "TWO" in env_vars
            assert session.detect_type("true") == ("string", "true")

    def test_setup_collects_warnings(self, caplog):
        """Test that invalid custom types are reported, not fatal."""
        with tempfile.TemporaryDirectory() as tmp:
            with caplog.at_level(logging.WARNING):
                session = EnvSession(path=tmp, custom_types={"broken": {}})
            assert len(session.warnings) == 1
            assert "broken" in caplog.text

    def test_check_env_type(self, caplog):
        """Test reporting the stored type of a variable."""
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, ".env", "PORT=8080\n")
            session = EnvSession(path=tmp)

            with caplog.at_level(logging.INFO, logger="envlens.core"):
                assert session.check_env_type("PORT") == "number"
            assert "exists with type: number (from .env)" in caplog.text

    def test_check_unknown_variable(self, caplog):
        """Test that unknown variables warn and return None."""
        with tempfile.TemporaryDirectory() as tmp:
            session = EnvSession(path=tmp)
            with caplog.at_level(logging.WARNING, logger="envlens.core"):
                assert session.check_env_type("MISSING") is None
            assert "'MISSING' does not exist" in caplog.text

    def test_peek_classifies(self):
        """Test that peek runs the full classifier."""
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, ".env", 'DEBUG="yes"\nDB=postgres://db.example.com/app\n')
            session = EnvSession(path=tmp)

            info = session.peek("DEBUG")
            assert info["value"] == "yes"
            assert info["type"] == "boolean"
            assert info["normalized"] == "true"
            assert session.peek("DB")["type"] == "database_url"
            assert session.peek("NOPE") is None

    def test_select_environment(self):
        """Test switching the preferred environment."""
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, ".env", "FOO=base\n")
            staging = _write(tmp, ".env.staging", "FOO=staging\n")
            session = EnvSession(path=tmp)
            assert session.get_env_vars()["FOO"].value == "base"

            session.select_environment(staging)
            assert session.options.preferred_environment == "staging"
            assert session.get_env_vars()["FOO"].value == "staging"

            session.select_environment("")
            assert session.get_env_vars()["FOO"].value == "base"

    def test_completion_items(self):
        """Test completion data with hidden and visible values."""
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, ".env", "B=2\nA=secret\n")
            session = EnvSession(path=tmp)

            items = session.completion_items()
            assert [item["label"] for item in items] == ["A", "B"]
            assert items[0]["detail"] == ".env"
            assert "secret" not in items[0]["documentation"]["value"]

            session.setup(path=tmp, hide_values=False)
            items = session.completion_items()
            assert "**Value:** `secret`" in items[0]["documentation"]["value"]


class TestModuleLevelApi:
    """Test the default-session helpers."""

    def test_setup_and_refresh(self, monkeypatch):
        """Test the module-level API against a fresh default session."""
        monkeypatch.setattr(core, "_default_session", EnvSession())
        with tempfile.TemporaryDirectory() as tmp:
            path = _write(tmp, ".env", "KEY=1\n")
            core.setup(path=tmp)
            assert core.get_env_vars()["KEY"].value == "1"
            assert core.check_env_type("KEY") == "number"

            Path(path).write_text("KEY=two\n")
            assert core.get_env_vars()["KEY"].value == "1"
            assert core.refresh_env_vars()["KEY"].value == "two"
            assert core.detect_type("#abc") == ("hex_color", "#abc")
            assert core.get_session() is core._default_session
