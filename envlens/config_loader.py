"""Configuration loading from YAML and JSON files."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ._types import ConfigError

logger = logging.getLogger(__name__)

VALID_OPTIONS = {'path', 'preferred_environment', 'types', 'custom_types', 'hide_values'}
VALID_CUSTOM_TYPE_FIELDS = {'pattern', 'validate', 'transform'}

def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load session options from a YAML or JSON file.

    Args:
        path: Path to the configuration file

    Returns:
        Options suitable for ``EnvSession.setup(**options)``

    Raises:
        ConfigError: If the file cannot be loaded or parsed
    """
    path = Path(path)

    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug(f"Loading config from: {path}")

    try:
        if path.suffix.lower() in ('.yml', '.yaml'):
            return _load_yaml_config(path)
        elif path.suffix.lower() == '.json':
            return _load_json_config(path)
        else:
            raise ConfigError(f"Unsupported config file format: {path.suffix}")

    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"Error loading config from {path}: {e}")

def _load_yaml_config(path: Path) -> Dict[str, Any]:
    """
    Load config from YAML file.

    Raises:
        ConfigError: If YAML parsing fails
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Error reading YAML file {path}: {e}")

    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ConfigError(f"Config must be a dictionary, got {type(config)}")

    return _normalize_config_dict(config, str(path), base_dir=path.parent)

def _load_json_config(path: Path) -> Dict[str, Any]:
    """
    Load config from JSON file.

    Raises:
        ConfigError: If JSON parsing fails
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Error reading JSON file {path}: {e}")

    if not isinstance(config, dict):
        raise ConfigError(f"Config must be a dictionary, got {type(config)}")

    return _normalize_config_dict(config, str(path), base_dir=path.parent)

def _normalize_config_dict(config: Dict[str, Any], source: str, base_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Validate the structure of a configuration dictionary.

    Only the shape is checked here. Custom types with a missing pattern are
    passed through so the type registry can skip them with a warning.

    Args:
        config: Raw configuration dictionary
        source: Source file path for error messages
        base_dir: Directory that a relative ``path`` option is resolved against

    Returns:
        Normalized options

    Raises:
        ConfigError: If an option has the wrong type
    """
    normalized: Dict[str, Any] = {}

    for key in config:
        if key not in VALID_OPTIONS:
            logger.warning(f"Unknown config option '{key}' in {source}")

    if 'path' in config and config['path'] is not None:
        if not isinstance(config['path'], str):
            raise ConfigError(f"Config option 'path' must be a string in {source}")
        env_path = Path(config['path'])
        if base_dir is not None and not env_path.is_absolute():
            env_path = base_dir / env_path
        normalized['path'] = str(env_path)

    if 'preferred_environment' in config and config['preferred_environment'] is not None:
        if not isinstance(config['preferred_environment'], str):
            raise ConfigError(f"Config option 'preferred_environment' must be a string in {source}")
        normalized['preferred_environment'] = config['preferred_environment']

    if 'hide_values' in config:
        if not isinstance(config['hide_values'], bool):
            raise ConfigError(f"Config option 'hide_values' must be boolean in {source}")
        normalized['hide_values'] = config['hide_values']

    if 'types' in config and config['types'] is not None:
        types = config['types']
        if isinstance(types, dict):
            for name, flag in types.items():
                if not isinstance(flag, bool):
                    raise ConfigError(f"Config option 'types.{name}' must be boolean in {source}")
        elif not isinstance(types, bool):
            raise ConfigError(f"Config option 'types' must be boolean or a mapping in {source}")
        normalized['types'] = types

    if 'custom_types' in config and config['custom_types'] is not None:
        custom_types = config['custom_types']
        if not isinstance(custom_types, dict):
            raise ConfigError(f"Config option 'custom_types' must be a mapping in {source}")

        for name, definition in custom_types.items():
            if not isinstance(definition, dict):
                continue
            for field in definition:
                if field not in VALID_CUSTOM_TYPE_FIELDS:
                    logger.warning(f"Unknown custom type field '{field}' for '{name}' in {source}")
            if 'validate' in definition and not isinstance(definition['validate'], str):
                raise ConfigError(f"Custom type '{name}' validate must be a regex string in {source}")
            if 'transform' in definition and not isinstance(definition['transform'], dict):
                raise ConfigError(
                    f"Custom type '{name}' transform must be a mapping with 'pattern' and 'replace' in {source}"
                )

        normalized['custom_types'] = custom_types

    logger.info(f"Successfully loaded config with {len(normalized)} option(s) from {source}")
    return normalized
