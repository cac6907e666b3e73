"""Configuration loader for YAML files."""

import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

logger = logging.getLogger("sms_verify")

PROJECT_ROOT = Path(__file__).parent.parent.parent


def load_yaml(filepath: Path) -> Dict[str, Any]:
    """Load YAML file and return as dictionary.

    Args:
        filepath: Path to YAML file.

    Returns:
        Dictionary with YAML contents.

    Raises:
        FileNotFoundError: If file doesn't exist.
        yaml.YAMLError: If YAML is malformed.
    """
    if not filepath.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    try:
        with open(filepath, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML file {filepath}: {e}")
        raise

    if config is None:
        logger.warning(f"YAML file is empty: {filepath}")
        return {}

    if not isinstance(config, dict):
        raise ValueError(f"Top-level YAML value must be a mapping: {filepath}")

    return config


def load_yaml_config(filepath: Union[str, Path]) -> Dict[str, Any]:
    """Load YAML file from string path or Path object.

    Relative paths are resolved against the project root.

    Args:
        filepath: Path to YAML file (string or Path).

    Returns:
        Dictionary with YAML contents.

    Raises:
        FileNotFoundError: If file doesn't exist.
        yaml.YAMLError: If YAML is malformed.
    """
    path = Path(filepath) if isinstance(filepath, str) else filepath
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return load_yaml(path)
