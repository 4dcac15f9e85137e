"""
Config system - Layered renderer configuration with validation.

Merge order (later overrides earlier):
1. RendererConfig defaults
2. YAML / JSON config files
3. .env file (STRATA_* keys only)
4. Environment variables (STRATA_* prefix)
5. Manual overrides
"""

from dataclasses import dataclass, field, fields
from glob import glob
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import logging
import os

import yaml
from dotenv import dotenv_values

from .faults import ConfigInvalidFault
from .security import SandboxPolicy


logger = logging.getLogger(__name__)

MODES = ("release", "debug")
SANDBOX_POLICIES = ("strict", "permissive")


@dataclass
class RendererConfig:
    """
    Renderer settings (the `templates` section of a config file).

    Attributes:
        mode: "release" (compile once) or "debug" (recompile per render)
        source_dir: Folder holding the templates root on disk
        root: Templates root inside the source tree
        extensions: Template file suffixes
        autoescape: Enable HTML autoescaping
        strict_undefined: Raise on undefined variables
        sandbox: Compile into a sandboxed environment
        sandbox_policy: "strict" or "permissive"
    """

    mode: str = "release"
    source_dir: str = "web"
    root: str = "templates"
    extensions: List[str] = field(default_factory=lambda: [".html"])
    autoescape: bool = True
    strict_undefined: bool = True
    sandbox: bool = False
    sandbox_policy: str = "strict"

    def __post_init__(self):
        self.mode = str(self.mode).lower()
        if self.mode not in MODES:
            raise ConfigInvalidFault("templates.mode", f"expected one of {MODES}, got {self.mode!r}")

        if isinstance(self.extensions, str):
            self.extensions = [ext.strip() for ext in self.extensions.split(",") if ext.strip()]
        if not self.extensions:
            raise ConfigInvalidFault("templates.extensions", "at least one extension is required")
        self.extensions = [ext if ext.startswith(".") else f".{ext}" for ext in self.extensions]

        if self.sandbox_policy not in SANDBOX_POLICIES:
            raise ConfigInvalidFault(
                "templates.sandbox_policy",
                f"expected one of {SANDBOX_POLICIES}, got {self.sandbox_policy!r}",
            )

        for name in ("autoescape", "strict_undefined", "sandbox"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigInvalidFault(f"templates.{name}", "expected a boolean")

    @property
    def debug(self) -> bool:
        return self.mode == "debug"

    def build_sandbox_policy(self) -> Optional[SandboxPolicy]:
        if not self.sandbox:
            return None
        if self.sandbox_policy == "permissive":
            return SandboxPolicy.permissive()
        return SandboxPolicy.strict()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RendererConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown template config keys: {', '.join(unknown)}")
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources.

    Environment keys map to nested config by double underscore:
    STRATA_TEMPLATES__MODE=debug -> {"templates": {"mode": "debug"}}
    """

    def __init__(self, env_prefix: str = "STRATA_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[List[str]] = None,
        env_prefix: str = "STRATA_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from all sources.

        Args:
            paths: Config file paths (glob patterns supported)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or []:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        for path_str in sorted(glob(pattern)):
            path = Path(path_str)
            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)
            else:
                logger.debug(f"Skipping unsupported config file {path}")

    def _load_json_file(self, path: Path):
        with open(path) as f:
            self._merge_dict(self.config_data, json.load(f))

    def _load_yaml_file(self, path: Path):
        with open(path) as f:
            data = yaml.safe_load(f)
            if data:
                self._merge_dict(self.config_data, data)

    def _load_env_file(self, path: str):
        """Load STRATA_* keys from a .env file."""
        if not Path(path).exists():
            logger.debug(f"Env file {path} not found, skipping")
            return

        for key, value in dotenv_values(path).items():
            if key.startswith(self.env_prefix) and value is not None:
                self._set_nested(key, value)

    def _load_from_env(self):
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert STRATA_TEMPLATES__MODE to nested dict."""
        parts = key[len(self.env_prefix):].lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current: Any = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def renderer_config(self) -> RendererConfig:
        """Validated renderer settings from the `templates` section."""
        section = self.get("templates", {})
        if not isinstance(section, dict):
            raise ConfigInvalidFault("templates", "expected a mapping")
        return RendererConfig.from_dict(section)

    def to_dict(self) -> dict:
        return self.config_data.copy()
