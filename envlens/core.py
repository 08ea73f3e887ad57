"""Core environment loading functionality."""

import os
import re
import time
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from ._types import Detection, EnvOptions, EnvVarEntry, TypesOption
from .classifier import Classifier, NUMBER_TYPE, STRING_TYPE
from .display import completion_item
from .registry import TypeRegistry
from .resolver import FileResolver, env_suffix
from . import validators

logger = logging.getLogger(__name__)

# Precompiled regex patterns
_QUOTED_STRING_PATTERN = re.compile(r'^(["\'])(.*)\1$', re.DOTALL)

def _parse_line(line: str) -> Optional[Tuple[str, str]]:
    """
    Parse a single line from an environment file.

    Args:
        line: The line to parse

    Returns:
        Tuple of (key, value) or None if the line is not an assignment
    """
    line = line.strip()
    if not line or line.startswith('#'):
        return None

    eq_pos = line.find('=')
    if eq_pos == -1:
        return None

    key = line[:eq_pos].strip()
    value = line[eq_pos + 1:].strip()
    if not key or not value:
        return None

    # One layer of matching quotes
    quoted = _QUOTED_STRING_PATTERN.match(value)
    if quoted:
        value = quoted.group(2)

    return key, value

def _provisional_type(value: str) -> str:
    return NUMBER_TYPE if validators.is_number(value) else STRING_TYPE

def _load_single_file(file_path: str) -> Dict[str, EnvVarEntry]:
    """
    Load the variables of a single environment file.

    Args:
        file_path: Path to the environment file

    Returns:
        Mapping of variable names to entries; empty if the file cannot be read
    """
    entries: Dict[str, EnvVarEntry] = {}
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            for line in f:
                parsed = _parse_line(line)
                if parsed:
                    key, value = parsed
                    entries[key] = EnvVarEntry(value, _provisional_type(value), file_path)
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Skipping unreadable environment file {file_path}: {e}")
        return {}

    logger.debug(f"Parsed {len(entries)} variable(s) from {file_path}")
    return entries

class EnvStore:
    """
    Parsed variables of the resolved environment files.

    The mapping is parsed once and kept until a forced load, a refresh or
    a change notification; it is not re-read when the files change on disk.
    Variables from a higher-priority file are never overwritten by a
    lower-priority one.
    """

    def __init__(self, resolver: Optional[FileResolver] = None):
        self.resolver = resolver if resolver is not None else FileResolver()
        self._entries: Dict[str, EnvVarEntry] = {}
        self._stale = False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    @property
    def stale(self) -> bool:
        return self._stale

    def mark_stale(self) -> None:
        """Force the next :meth:`load` to re-resolve and re-parse."""
        self._stale = True

    def invalidate(self) -> None:
        self._entries = {}
        self.resolver.invalidate()

    def load(
        self,
        path: Optional[str] = None,
        preferred_environment: Optional[str] = None,
        force: bool = False,
    ) -> Dict[str, EnvVarEntry]:
        """
        Parse the environment files into the variable mapping.

        Args:
            path: Directory holding the ``.env*`` files
            preferred_environment: Suffix of the highest-priority file
            force: Re-parse even if variables are already loaded

        Returns:
            Snapshot of the variable mapping
        """
        if self._stale:
            # Cleared before resolving so a change seen mid-load stays pending
            self._stale = False
            self.resolver.invalidate()
            force = True

        if not force and self._entries:
            return self.snapshot()

        files = self.resolver.find_env_files(path, preferred_environment)
        entries: Dict[str, EnvVarEntry] = {}

        for file_path in files:
            for key, entry in _load_single_file(file_path).items():
                # Earlier files in resolver order have higher priority
                if key not in entries:
                    entries[key] = entry

        self._entries = entries
        logger.info(f"Loaded {len(entries)} environment variables from {len(files)} file(s)")
        return self.snapshot()

    def refresh(self, path: Optional[str] = None, preferred_environment: Optional[str] = None) -> Dict[str, EnvVarEntry]:
        """Drop every cache and reload from disk."""
        self.invalidate()
        return self.load(path, preferred_environment, force=True)

    def get(self, name: str) -> Optional[EnvVarEntry]:
        return self._entries.get(name)

    def snapshot(self) -> Dict[str, EnvVarEntry]:
        return dict(self._entries)

class EnvSession:
    """
    Everything an editor session needs: options, type registry, classifier,
    file resolver and variable store.

    Reconfiguring through :meth:`setup` replaces the registry state and the
    options wholesale.
    """

    def __init__(self, **options: Any):
        self.options = EnvOptions()
        self.registry = TypeRegistry()
        self.classifier = Classifier(self.registry)
        self.store = EnvStore()
        self.warnings: List[str] = []
        if options:
            self.setup(**options)

    def setup(
        self,
        *,
        path: Optional[str] = None,
        preferred_environment: Optional[str] = None,
        types: TypesOption = True,
        custom_types: Optional[Dict[str, Any]] = None,
        hide_values: bool = True,
        load: bool = True,
    ) -> "EnvSession":
        """
        Apply a configuration and (by default) load the variables.

        Args:
            path: Directory holding the ``.env*`` files, defaults to the cwd
            preferred_environment: Suffix of the file with top priority
            types: False, True or a mapping of built-in type names to flags
            custom_types: Custom type definitions keyed by name
            hide_values: Mask values in completion documentation
            load: Parse the environment files right away

        Returns:
            The session itself
        """
        self.options = EnvOptions(
            path=path,
            preferred_environment=preferred_environment,
            types=types,
            custom_types=custom_types,
            hide_values=hide_values,
        )
        self.warnings = self.registry.configure(types, custom_types)
        self.store.invalidate()
        if load:
            self.load()
        return self

    def find_env_files(self) -> List[str]:
        return self.store.resolver.find_env_files(self.options.path, self.options.preferred_environment)

    def load(self, force: bool = False) -> Dict[str, EnvVarEntry]:
        return self.store.load(self.options.path, self.options.preferred_environment, force=force)

    def refresh(self) -> Dict[str, EnvVarEntry]:
        env_vars = self.store.refresh(self.options.path, self.options.preferred_environment)
        logger.info("Environment variables refreshed")
        return env_vars

    def get_env_vars(self) -> Dict[str, EnvVarEntry]:
        """Return the current variables, loading them on first use."""
        return self.load()

    def detect_type(self, value: str) -> Detection:
        return self.classifier.detect_type(value)

    def check_env_type(self, name: str) -> Optional[str]:
        """
        Report the stored type of a variable.

        Args:
            name: Variable name

        Returns:
            The type tag, or None (with a warning) if the variable is unknown
        """
        self.load()
        entry = self.store.get(name)
        if entry is None:
            logger.warning(f"Environment variable '{name}' does not exist")
            return None

        logger.info(
            f"Environment variable '{name}' exists with type: {entry.type} "
            f"(from {os.path.basename(entry.source)})"
        )
        return entry.type

    def peek(self, name: str) -> Optional[Dict[str, str]]:
        """
        Look up a variable and classify its value with the full type set.

        Returns:
            Dict with name, value, type, normalized value and source, or
            None (with a warning) if the variable is unknown
        """
        self.load()
        entry = self.store.get(name)
        if entry is None:
            logger.warning(f"Environment variable '{name}' does not exist")
            return None

        type_name, normalized = self.classifier.detect_type(entry.value)
        return {
            "name": name,
            "value": entry.value,
            "type": type_name,
            "normalized": normalized,
            "source": entry.source,
        }

    def select_environment(self, environment: str) -> Dict[str, EnvVarEntry]:
        """
        Switch the preferred environment and reload.

        Args:
            environment: A suffix such as ``"staging"`` or a path to an
                ``.env.<suffix>`` file
        """
        suffix = env_suffix(environment)
        if suffix is None:
            suffix = environment
        self.options.preferred_environment = suffix
        logger.info(f"Switched to environment: {suffix or '.env'}")
        return self.refresh()

    def completion_items(self) -> List[Dict[str, Any]]:
        return [
            completion_item(name, entry, hide_value=self.options.hide_values)
            for name, entry in sorted(self.get_env_vars().items())
        ]

# Session used by the module-level helpers
_default_session = EnvSession()

def get_session() -> EnvSession:
    return _default_session

def setup(**options: Any) -> EnvSession:
    """Configure the default session."""
    return _default_session.setup(**options)

def get_env_vars() -> Dict[str, EnvVarEntry]:
    return _default_session.get_env_vars()

def refresh_env_vars() -> Dict[str, EnvVarEntry]:
    return _default_session.refresh()

def check_env_type(name: str) -> Optional[str]:
    return _default_session.check_env_type(name)

def detect_type(value: str) -> Detection:
    return _default_session.detect_type(value)

def watch_env(
    session: Optional[EnvSession] = None,
    callback: Optional[Callable[[], None]] = None,
    interval: float = 1.0,
    use_watchdog: bool = True,
) -> 'EnvWatcher':
    """
    Watch a session's directory for changes to environment files.

    Args:
        session: Session to notify, defaults to the module-level session
        callback: Function to call when an environment file changes
        interval: Polling interval in seconds (polling mode only)
        use_watchdog: Use watchdog observers instead of polling

    Returns:
        EnvWatcher instance with start() and stop() methods
    """
    return EnvWatcher(session or _default_session, callback, interval, use_watchdog)

class EnvWatcher:
    """
    File watcher for environment files.

    Change events only mark the session's store stale; the variables are
    reloaded by the next load on the caller's thread.
    """

    def __init__(
        self,
        session: EnvSession,
        callback: Optional[Callable[[], None]] = None,
        interval: float = 1.0,
        use_watchdog: bool = True,
    ):
        self.session = session
        self.path = Path(session.options.path or os.getcwd())
        self.callback = callback
        self.interval = interval
        self.use_watchdog = use_watchdog
        self.running = False
        self._thread: Optional[threading.Thread] = None
        self._observer = None
        self._mtimes: Dict[str, float] = {}

    def start(self) -> None:
        """Start watching the directory."""
        if self.running:
            return

        self.running = True
        if self.use_watchdog:
            self._start_watchdog()
        else:
            self._mtimes = self._snapshot_mtimes()
            self._start_polling()

    def stop(self) -> None:
        """Stop watching the directory."""
        self.running = False
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        if self._thread and self._thread.is_alive():
            self._thread.join()

    def _start_watchdog(self) -> None:
        from watchdog.observers import Observer
        from watchdog.events import FileSystemEventHandler

        watcher = self

        class EnvFileHandler(FileSystemEventHandler):
            def on_any_event(self, event):
                if event.is_directory:
                    return
                paths = [event.src_path, getattr(event, 'dest_path', '')]
                if any(path and env_suffix(str(path)) is not None for path in paths):
                    watcher._handle_change()

        self._observer = Observer()
        self._observer.schedule(EnvFileHandler(), str(self.path), recursive=False)
        self._observer.start()

    def _snapshot_mtimes(self) -> Dict[str, float]:
        mtimes = {}
        try:
            entries = list(self.path.iterdir())
        except OSError:
            return mtimes
        for entry in entries:
            if env_suffix(entry.name) is None:
                continue
            try:
                mtimes[str(entry)] = entry.stat().st_mtime
            except OSError:
                continue
        return mtimes

    def _start_polling(self) -> None:
        def poll_loop():
            while self.running:
                current = self._snapshot_mtimes()
                if current != self._mtimes:
                    self._mtimes = current
                    self._handle_change()
                time.sleep(self.interval)

        self._thread = threading.Thread(target=poll_loop, daemon=True)
        self._thread.start()

    def _handle_change(self) -> None:
        """Handle a change to an environment file."""
        logger.info(f"Environment files changed in: {self.path}")
        self.session.store.mark_stale()

        if self.callback:
            try:
                self.callback()
            except Exception as e:
                logger.error(f"Error in change callback: {e}")
