"""
Interpreter configuration.

Settings come from defaults, then an optional YAML file, then ``TREELOX_*``
environment variables. Example file::

    max_errors: 50
    max_call_depth: 2000
    allow_local_redeclaration: false
    warn_undefined_globals: true
    natives: [str, clock]
    log_level: DEBUG
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "TREELOX_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Invalid configuration file or value."""
    pass


@dataclass(frozen=True)
class InterpreterConfig:
    """Settings shared by the resolver, interpreter and CLI."""
    max_errors: int = 20                    # Stop collecting static errors after this many
    allow_local_redeclaration: bool = False  # Accept 'var a; var a;' inside a block
    warn_undefined_globals: bool = True     # W301 for names nothing declares
    natives: Optional[List[str]] = None     # Built-ins to install; None = all
    max_call_depth: int = 1000              # Nested calls before a stack overflow error
    log_level: str = "WARNING"

    def __post_init__(self):
        for name in ("max_errors", "max_call_depth"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        for name in ("allow_local_redeclaration", "warn_undefined_globals"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be true or false, got {getattr(self, name)!r}")
        if self.natives is not None:
            if isinstance(self.natives, str) or not all(isinstance(n, str) for n in self.natives):
                raise ConfigError(f"natives must be a list of names, got {self.natives!r}")
            object.__setattr__(self, "natives", list(self.natives))
        level = str(self.log_level).upper()
        if level not in _LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level!r}")
        object.__setattr__(self, "log_level", level)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InterpreterConfig":
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown configuration key(s): {', '.join(unknown)}")
        return cls(**dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_config(path: Union[str, Path]) -> InterpreterConfig:
    """Load an InterpreterConfig from a YAML file."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML parse error in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config must be a mapping, got {type(data).__name__}")

    logger.debug("loaded config from %s: %s", config_path, data)
    return InterpreterConfig.from_dict(data)


def _parse_bool(name: str, text: str) -> bool:
    value = text.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{name} must be a boolean, got {text!r}")


def apply_environment(config: InterpreterConfig,
                      environ: Optional[Mapping[str, str]] = None) -> InterpreterConfig:
    """Return a copy of config with ``TREELOX_*`` environment overrides applied."""
    env = os.environ if environ is None else environ
    overrides: Dict[str, Any] = {}

    for f in fields(InterpreterConfig):
        key = ENV_PREFIX + f.name.upper()
        if key not in env:
            continue
        raw = env[key]
        if f.name in ("max_errors", "max_call_depth"):
            try:
                overrides[f.name] = int(raw)
            except ValueError:
                raise ConfigError(f"{key} must be an integer, got {raw!r}") from None
        elif f.name in ("allow_local_redeclaration", "warn_undefined_globals"):
            overrides[f.name] = _parse_bool(key, raw)
        elif f.name == "natives":
            overrides[f.name] = [n.strip() for n in raw.split(",") if n.strip()]
        else:
            overrides[f.name] = raw

    if overrides:
        logger.debug("environment overrides: %s", overrides)
        return replace(config, **overrides)
    return config


def resolve_config(path: Optional[Union[str, Path]] = None,
                   environ: Optional[Mapping[str, str]] = None) -> InterpreterConfig:
    """Defaults, then the optional YAML file, then environment overrides."""
    config = load_config(path) if path is not None else InterpreterConfig()
    return apply_environment(config, environ)
