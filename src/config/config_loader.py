"""Configuration loader for the story extractor and UI server"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from src.models.configs import StoryExtractorConfig, UiServerConfig
from src.models.errors import ConfigError

load_dotenv()

STORY_EXTRACTOR_ENV_PREFIX = "STORY_EXTRACTOR_"
UI_SERVER_ENV_PREFIX = "UI_SERVER_"

ConfigT = TypeVar("ConfigT", bound=BaseModel)


def find_config_file(config_path: Optional[Path | str], config_name: str) -> Optional[Path]:
    """
    Locate the configuration file.

    An explicit path must exist. Without one, ``<config_name>.yaml`` is looked
    up in the current directory and then in the home directory.

    Args:
        config_path: Explicit path, or None to search the default locations
        config_name: Base name of the file in the default locations

    Returns:
        Path of the file, or None if no default file exists

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
    """
    if config_path is not None:
        path = Path(config_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        return path

    for directory in (Path.cwd(), Path.home()):
        for suffix in (".yaml", ".yml"):
            candidate = directory / f"{config_name}{suffix}"
            if candidate.is_file():
                return candidate

    return None


def read_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Read a YAML configuration file into a dict.

    Raises:
        ConfigError: If the file cannot be read or is not a YAML mapping
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"error reading config file {config_path}: {e}") from e

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise ConfigError(f"config file {config_path} must contain a mapping")

    return config_data


def env_overrides(
    model: Type[BaseModel], prefix: str, environ: Mapping[str, str]
) -> Dict[str, Any]:
    """
    Collect config values from environment variables.

    Field names are upper-cased and appended to the prefix; nested models add
    their field name as another segment, e.g. ``STORY_EXTRACTOR_LLM_API_KEY``.

    Args:
        model: Config model class
        prefix: Environment variable prefix
        environ: Environment to read from

    Returns:
        Nested dict of raw string values
    """
    data: Dict[str, Any] = {}
    for name, field in model.model_fields.items():
        annotation = field.annotation
        key = f"{prefix}{name.upper()}"

        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            nested = env_overrides(annotation, f"{key}_", environ)
            if nested:
                data[name] = nested
        elif key in environ:
            data[name] = environ[key]

    return data


def merge_config(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``; None values are ignored."""
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_config(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def load_config(
    model: Type[ConfigT],
    config_name: str,
    env_prefix: str,
    config_path: Optional[Path | str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ConfigT:
    """
    Load configuration with precedence defaults < file < environment < overrides.

    Args:
        model: Config model class
        config_name: Base name of the default config file
        env_prefix: Environment variable prefix
        config_path: Explicit config file path
        overrides: Values from command line flags (None values are ignored)
        environ: Environment to read from (default: os.environ)

    Returns:
        Validated config object

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        ConfigError: If the file or the merged values are invalid
    """
    path = find_config_file(config_path, config_name)
    data = read_config_file(path) if path else {}

    if environ is None:
        environ = os.environ

    data = merge_config(data, env_overrides(model, env_prefix, environ))
    data = merge_config(data, overrides or {})

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"unable to decode config: {e}") from e


def load_story_extractor_config(
    config_path: Optional[Path | str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> StoryExtractorConfig:
    """Load configuration for the story extractor CLI."""
    return load_config(
        StoryExtractorConfig,
        "story-extractor",
        STORY_EXTRACTOR_ENV_PREFIX,
        config_path,
        overrides,
        environ,
    )


def load_ui_server_config(
    config_path: Optional[Path | str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> UiServerConfig:
    """Load configuration for the UI server."""
    return load_config(
        UiServerConfig,
        "ui-server",
        UI_SERVER_ENV_PREFIX,
        config_path,
        overrides,
        environ,
    )
