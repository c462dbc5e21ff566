"""Configuration management for desktop-screenshot.

Configuration priority (highest to lowest):
1. Overrides (passed to load_config, e.g. from the CLI)
2. Environment variables (DESKTOP_SCREENSHOT_*)
3. Config file (~/.config/desktop-screenshot/config.yaml)
4. Built-in defaults
"""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Any

import yaml
from platformdirs import user_config_dir

ENV_PREFIX = "DESKTOP_SCREENSHOT"
CONFIG_DIR = Path(user_config_dir("desktop-screenshot"))
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.yaml"


@dataclass
class Config:
    """desktop-screenshot configuration."""

    # Freeze illusion staging
    temp_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    selection_prefix: str = "selection-tmp-"
    viewer: str = "feh"

    # Tool probing
    probe_flag: str = "--version"
    strict_probe: bool = False
    probe_timeout: float = 2.0

    # Raise instead of warn when a tool exits nonzero
    fail_on_tool_error: bool = False

    # Hooks
    hooks_dir: Optional[Path] = field(default_factory=lambda: CONFIG_DIR / "hooks")

    def __post_init__(self):
        if isinstance(self.temp_dir, str):
            self.temp_dir = Path(self.temp_dir)
        if isinstance(self.hooks_dir, str):
            self.hooks_dir = Path(self.hooks_dir)


PATH_KEYS = {"temp_dir", "hooks_dir"}
BOOL_KEYS = {"strict_probe", "fail_on_tool_error"}


def _env(name: str) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}_{name}")


def _config_path_from_env() -> Optional[Path]:
    value = _env("CONFIG") or _env("CONFIG_PATH")
    if value:
        return Path(value).expanduser()
    return None


def _load_config_file(path: Path, strict: bool = False) -> dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except Exception as exc:
        if strict:
            raise ValueError(f"Failed to parse config file {path}: {exc}")
        return {}

    if not isinstance(data, dict):
        if strict:
            raise ValueError(f"Config file {path} must be a mapping")
        return {}

    return data


def _expand_path(value: Any) -> Any:
    if value is None:
        return value
    return str(Path(value).expanduser())


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes", "on")


def config_defaults() -> dict:
    return {
        "temp_dir": tempfile.gettempdir(),
        "selection_prefix": "selection-tmp-",
        "viewer": "feh",
        "probe_flag": "--version",
        "strict_probe": False,
        "probe_timeout": 2.0,
        "fail_on_tool_error": False,
        "hooks_dir": str(CONFIG_DIR / "hooks"),
    }


def _load_env_overrides() -> dict:
    config: dict[str, Any] = {}

    mapping = {
        "TEMP_DIR": "temp_dir",
        "SELECTION_PREFIX": "selection_prefix",
        "VIEWER": "viewer",
        "PROBE_FLAG": "probe_flag",
        "PROBE_TIMEOUT": "probe_timeout",
        "HOOKS_DIR": "hooks_dir",
    }

    for env_name, key in mapping.items():
        value = _env(env_name)
        if value is None:
            continue
        if key in PATH_KEYS:
            config[key] = _expand_path(value)
        elif key == "probe_timeout":
            try:
                config[key] = float(value)
            except ValueError:
                continue
        else:
            config[key] = value

    for env_name, key in [
        ("STRICT_PROBE", "strict_probe"),
        ("FAIL_ON_TOOL_ERROR", "fail_on_tool_error"),
    ]:
        value = _env(env_name)
        if value is None:
            continue
        config[key] = _parse_bool(value)

    return config


def resolve_config_path(config_path: Optional[Path] = None) -> Path:
    return config_path or _config_path_from_env() or DEFAULT_CONFIG_PATH


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict] = None,
    strict: bool = False,
) -> Config:
    """Load configuration from all sources."""
    resolved_path = resolve_config_path(config_path)

    config_dict = config_defaults()
    file_config = _load_config_file(resolved_path, strict=strict)
    config_dict.update(file_config)
    config_dict.update(_load_env_overrides())

    if overrides:
        for key, value in overrides.items():
            if value is not None:
                config_dict[key] = value

    for key in PATH_KEYS:
        if key in config_dict and config_dict[key] is not None:
            config_dict[key] = _expand_path(config_dict[key])

    return Config(**config_dict)


# Global config instance (lazy loaded)
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def config_schema() -> dict:
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {
            "temp_dir": {"type": "string"},
            "selection_prefix": {"type": "string"},
            "viewer": {"type": "string"},
            "probe_flag": {"type": "string"},
            "strict_probe": {"type": "boolean"},
            "probe_timeout": {"type": "number", "exclusiveMinimum": 0},
            "fail_on_tool_error": {"type": "boolean"},
            "hooks_dir": {"type": ["string", "null"]},
        },
        "additionalProperties": False,
    }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config_dict(data: Any) -> list[str]:
    errors: list[str] = []
    if not isinstance(data, dict):
        return ["Config must be a mapping/object"]

    props = config_schema().get("properties", {})

    for key in data.keys():
        if key not in props:
            errors.append(f"Unknown config key: {key}")

    for key, value in data.items():
        if key not in props:
            continue
        expected = props[key].get("type")
        if isinstance(expected, list):
            if value is None and "null" in expected:
                continue
            if "string" in expected and isinstance(value, str):
                continue
            errors.append(f"{key} must be one of types: {', '.join(expected)}")
            continue

        if expected == "string" and not isinstance(value, str):
            errors.append(f"{key} must be a string")
        elif expected == "boolean" and not isinstance(value, bool):
            errors.append(f"{key} must be a boolean")
        elif expected == "number" and not _is_number(value):
            errors.append(f"{key} must be a number")

        if key == "probe_timeout" and _is_number(value) and value <= 0:
            errors.append("probe_timeout must be > 0")
        if key == "selection_prefix" and isinstance(value, str) and "/" in value:
            errors.append("selection_prefix must not contain '/'")

    return errors


def validate_config_file(config_path: Optional[Path] = None) -> list[str]:
    path = resolve_config_path(config_path)
    if not path.exists():
        return []
    data = _load_config_file(path, strict=True)
    return validate_config_dict(data)


def config_to_dict(config: Config) -> dict:
    return {
        "temp_dir": str(config.temp_dir),
        "selection_prefix": config.selection_prefix,
        "viewer": config.viewer,
        "probe_flag": config.probe_flag,
        "strict_probe": config.strict_probe,
        "probe_timeout": config.probe_timeout,
        "fail_on_tool_error": config.fail_on_tool_error,
        "hooks_dir": str(config.hooks_dir) if config.hooks_dir else None,
    }
