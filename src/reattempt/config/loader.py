"""
Policy file loading.

A policy file is YAML with an optional ``logging`` section and a
``policies`` section mapping names to policy definitions::

    logging:
      level: INFO
    policies:
      fetch:
        type: backoff
        max_retries: 4
        delay: 0.5
"""

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

from reattempt.config.resolver import resolve_config
from reattempt.exceptions import PolicyLoadError


class Config:
    """Configuration container with dict-like access."""

    def __init__(self, data: dict[str, Any], path: Path | None = None):
        self.data = data
        self.path = path
        self.policies = data.get("policies") or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation."""
        value: Any = self.data
        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default
        return value

    def __getitem__(self, key: str) -> Any:
        """Dict-like access: config['key'] or config['nested.key']."""
        if "." in key:
            return self.get(key)
        if key in self.data:
            value = self.data[key]
            if isinstance(value, dict):
                return Config(value)
            return value
        raise KeyError(f"Config key '{key}' not found")

    def __contains__(self, key: str) -> bool:
        value: Any = self.data
        for k in key.split("."):
            if not isinstance(value, dict) or k not in value:
                return False
            value = value[k]
        return True

    def __iter__(self) -> Iterator[str]:
        return iter(self.data)

    def keys(self):
        return self.data.keys()

    def items(self):
        return self.data.items()

    def validate(self) -> None:
        """Validate configuration structure."""
        policies = self.data.get("policies")
        if policies is not None and not isinstance(policies, dict):
            raise PolicyLoadError(
                f"Configuration 'policies' must be a mapping, got {type(policies).__name__}",
                path=str(self.path) if self.path else None,
            )
        for name, definition in (policies or {}).items():
            if not isinstance(definition, dict):
                raise PolicyLoadError(
                    f"Policy '{name}' must be a mapping, got {type(definition).__name__}",
                    path=str(self.path) if self.path else None,
                )


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" at line {mark.line + 1}, column {mark.column + 1}" if mark is not None else ""
        raise PolicyLoadError(f"Error parsing {path.name}{where}: {e}", path=str(path)) from e
    except OSError as e:
        raise PolicyLoadError(f"Cannot read {path}: {e}", path=str(path)) from e

    if not isinstance(data, dict):
        raise PolicyLoadError(
            f"Configuration must be a mapping, got {type(data).__name__}",
            path=str(path),
        )
    return data


def load_config(path: str | Path, env: str | None = None) -> Config:
    """
    Load a policy file.

    Also merges ``<stem>.<env>.yaml`` next to it when ``env`` is given, then
    substitutes ${VAR} and {env} placeholders.

    Args:
        path: Path to the YAML file
        env: Environment name (dev, staging, prod)

    Returns:
        Validated Config
    """
    path = Path(path)
    if not path.is_file():
        raise PolicyLoadError(f"Configuration file not found: {path}", path=str(path))

    config_data = _read_yaml(path)

    if env:
        env_path = path.with_name(f"{path.stem}.{env}{path.suffix}")
        if env_path.is_file():
            _merge_dict(config_data, _read_yaml(env_path))

    config = Config(resolve_config(config_data, env or "dev"), path=path)
    config.validate()
    return config


def _merge_dict(base: dict, override: dict):
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_dict(base[key], value)
        else:
            base[key] = value
