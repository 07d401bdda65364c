"""YAML defaults for the tyson command line."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from tyson.errors import ConfigError

DEFAULT_CONFIG_NAME = ".tyson.yml"


class ConfigLoader:
    """Loads and type-checks a YAML mapping of option defaults."""

    KEY_TYPES = {
        "credentials_file": str,
        "random": bool,
        "regex": str,
        "force": bool,
        "resource_group": str,
        "vm_name": str,
        "seed": int,
        "verbose": bool,
        "log_file": str,
        "report_file": str,
    }

    def resolve_path(self, explicit_path: Optional[str]) -> Optional[str]:
        if explicit_path is not None:
            return explicit_path
        default_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_NAME)
        if os.path.exists(default_path):
            return default_path
        return None

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ConfigError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - set(self.KEY_TYPES))
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        for key, value in parsed.items():
            expected = self.KEY_TYPES[key]
            # YAML booleans are ints too; keep them out of int keys.
            if value is None:
                continue
            if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
                raise ConfigError(
                    f"Configuration key '{key}' must be of type {expected.__name__}, "
                    f"got {type(value).__name__}."
                )

        return parsed
