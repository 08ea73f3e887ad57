"""
Environment File Inspector

Discovers .env files in a workspace, parses their variables and infers a
semantic type for every value, for use by editor completion and peek views.
"""

__version__ = "0.1.0"

from .core import (
    EnvSession, EnvStore, EnvWatcher, setup, get_session, get_env_vars,
    refresh_env_vars, check_env_type, detect_type, watch_env,
)
from .classifier import Classifier
from .registry import TypeDefinition, TypeRegistry
from .resolver import FileResolver
from .config_loader import load_config
from ._types import EnvVarEntry, Validator, Transformer

__all__ = [
    "EnvSession",
    "EnvStore",
    "EnvWatcher",
    "setup",
    "get_session",
    "get_env_vars",
    "refresh_env_vars",
    "check_env_type",
    "detect_type",
    "watch_env",
    "Classifier",
    "TypeDefinition",
    "TypeRegistry",
    "FileResolver",
    "load_config",
    "EnvVarEntry",
    "Validator",
    "Transformer",
]
