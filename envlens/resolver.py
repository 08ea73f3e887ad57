"""Discovery and priority ordering of environment files."""

import logging
import os
import re
from pathlib import Path
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# ".env" or ".env.<suffix>" where the suffix has no further dots
ENV_FILE_PATTERN = re.compile(r'^\.env(?:\.([^.]+))?$')

Scanner = Callable[[str], List[str]]

def _scan_directory(path: str) -> List[str]:
    """
    List the environment files directly inside a directory.

    Args:
        path: Directory to scan (not recursive)

    Returns:
        Absolute paths of matching regular files, unsorted; empty if the
        directory is missing or unreadable
    """
    directory = Path(path)
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        logger.debug(f"Cannot scan {directory}: {e}")
        return []

    files = []
    for entry in entries:
        if not ENV_FILE_PATTERN.match(entry.name):
            continue
        try:
            if not entry.is_file():
                continue
        except OSError:
            continue
        files.append(os.path.abspath(str(entry)))
    return files

def env_suffix(file_path: str) -> Optional[str]:
    """Return the ``<suffix>`` of ``.env.<suffix>``, '' for ``.env``, None otherwise."""
    match = ENV_FILE_PATTERN.match(os.path.basename(file_path))
    if not match:
        return None
    return match.group(1) or ""

def sort_env_files(files: List[str], preferred_environment: str = "") -> List[str]:
    """
    Order environment files by priority.

    The preferred ``.env.<preferred_environment>`` file comes first, then
    the bare ``.env`` file, then everything else by ascending path.
    """
    preferred_name = f".env.{preferred_environment}" if preferred_environment else None

    def priority(file_path: str) -> Tuple[bool, bool, str]:
        name = os.path.basename(file_path)
        return (name != preferred_name, name != ".env", file_path)

    return sorted(set(files), key=priority)

class ResolverCache:
    """Resolved file list plus the options it was resolved with."""

    def __init__(self, files: List[str], path: str, preferred_environment: str):
        self.files = files
        self.path = path
        self.preferred_environment = preferred_environment

    def matches(self, path: str, preferred_environment: str) -> bool:
        return self.path == path and self.preferred_environment == preferred_environment

class FileResolver:
    """
    Finds ``.env*`` files and remembers the answer.

    A cached list is reused only while both the directory and the preferred
    environment match the request that produced it.
    """

    def __init__(self, scanner: Optional[Scanner] = None):
        self._scanner = scanner or _scan_directory
        self._cache: Optional[ResolverCache] = None

    @property
    def cached(self) -> bool:
        return self._cache is not None

    def invalidate(self) -> None:
        self._cache = None

    def find_env_files(self, path: Optional[str] = None, preferred_environment: Optional[str] = None) -> List[str]:
        """
        Resolve the environment files of a directory in priority order.

        Args:
            path: Directory to scan, defaults to the current working directory
            preferred_environment: Suffix of the file that takes top priority

        Returns:
            Ordered list of absolute file paths (a copy of the cached list)
        """
        path = path or os.getcwd()
        preferred_environment = preferred_environment or ""

        if self._cache is not None and self._cache.matches(path, preferred_environment):
            logger.debug(f"Resolver cache hit for {path} (preferred={preferred_environment!r})")
            return list(self._cache.files)

        logger.debug(f"Resolver cache miss for {path} (preferred={preferred_environment!r})")
        files = sort_env_files(self._scanner(path), preferred_environment)
        self._cache = ResolverCache(files, path, preferred_environment)

        logger.debug(f"Resolved {len(files)} environment file(s) in {path}")
        return list(files)
