"""Configuration loading and merging utilities.

Reads a participant's YAML config, expands ${VAR} references from the
environment (optionally seeded from a .env file) and deep-merges overrides.
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from mpc_common.core.config.models import Config

logger = logging.getLogger(__name__)

_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: str) -> str:
    """Replace ${VAR} patterns with values from os.environ.

    Unknown variables are left in place so check_unexpanded_vars can report them.

    Examples:
        >>> os.environ['PARTY_NAME'] = 'alice'
        >>> expand_env_vars('name: ${PARTY_NAME}')
        'name: alice'
    """

    def replacer(match: re.Match[str]) -> str:
        return os.environ.get(match.group(1), match.group(0))

    return _VAR_PATTERN.sub(replacer, value)


def expand_env_vars_recursive(obj: Any) -> Any:
    """Expand ${VAR} patterns in every string inside nested dicts and lists."""
    if isinstance(obj, dict):
        return {key: expand_env_vars_recursive(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [expand_env_vars_recursive(item) for item in obj]
    if isinstance(obj, str):
        return expand_env_vars(obj)
    return obj


def merge_configs(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Deep merge overrides on top of base, returning a new dict.

    Examples:
        >>> merge_configs({'logging': {'level': 'INFO', 'directory': 'logs'}},
        ...               {'logging': {'level': 'DEBUG'}})
        {'logging': {'level': 'DEBUG', 'directory': 'logs'}}
    """
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def check_unexpanded_vars(data: Any, source: str) -> None:
    """Fail if any ${VAR} pattern survived expansion.

    Args:
        data: Expanded configuration data.
        source: Label used in the error message, typically the file path.

    Raises:
        ValueError: Listing every unresolved variable.
    """
    unresolved: list[str] = []
    _collect_unexpanded_vars(data, unresolved)
    if unresolved:
        unique = sorted(set(unresolved))
        raise ValueError(
            f"Unresolved environment variable(s) in {source}: {', '.join(unique)}. "
            f"Set these variables or remove the ${{VAR}} references."
        )


def _collect_unexpanded_vars(obj: Any, found: list[str]) -> None:
    if isinstance(obj, dict):
        for value in obj.values():
            _collect_unexpanded_vars(value, found)
    elif isinstance(obj, list):
        for item in obj:
            _collect_unexpanded_vars(item, found)
    elif isinstance(obj, str):
        found.extend(f"${{{name}}}" for name in _VAR_PATTERN.findall(obj))


def load_config(
    path: Path | str,
    env_file: Path | str | None = None,
    overrides: dict[str, Any] | None = None,
) -> Config:
    """Load a participant configuration from YAML.

    Args:
        path: Path to the YAML configuration file.
        env_file: Optional .env file loaded into os.environ before expansion.
            Existing environment variables take precedence.
        overrides: Optional dict deep-merged over the file contents.

    Returns:
        Parsed Config.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        yaml.YAMLError: If the YAML is malformed.
        ValueError: If a ${VAR} reference cannot be resolved.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    if env_file is not None:
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path, override=False)
        else:
            logger.warning(f"Env file not found, skipping: {env_path}")

    with config_path.open() as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}

    if overrides:
        data = merge_configs(data, overrides)

    data = expand_env_vars_recursive(data)
    check_unexpanded_vars(data, source=str(config_path))

    config = Config(**data)
    if config.circuit is not None and not config.circuit.is_absolute():
        config.circuit = config_path.parent / config.circuit
    return config
