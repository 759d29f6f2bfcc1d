#!/usr/bin/env python3
"""
Configuration loading for the template analyser (elemix.config.json).
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .logging import get_logger

CONFIG_FILE_NAME = "elemix.config.json"

logger = get_logger(__name__)


class ConfigError(RuntimeError):
    """Raised when an explicitly requested configuration file cannot be used."""


@dataclass
class AnalyserConfig:
    """Settings that shape what the analyser recognizes."""
    template_tag: str = "html"
    framework_module: str = "@neuralfog/elemix"
    component_decorator: str = "component"
    extensions: List[str] = field(default_factory=lambda: [".ts", ".tsx"])
    exclude_paths: List[str] = field(default_factory=lambda: ["node_modules"])
    report_unused_imports: bool = True
    source: Optional[Path] = None

    def is_framework_module(self, module_path: str) -> bool:
        """Check whether an import specifier points at the framework or one of its sub-paths."""
        return module_path == self.framework_module or module_path.startswith(self.framework_module + "/")


_KEY_MAP = {
    "templateTag": "template_tag",
    "frameworkModule": "framework_module",
    "componentDecorator": "component_decorator",
    "extensions": "extensions",
    "exclude": "exclude_paths",
    "reportUnusedImports": "report_unused_imports",
}


def load_config(target_path: Path, config_path: Optional[Path] = None) -> AnalyserConfig:
    """Load configuration for a target directory.

    An explicit ``config_path`` must exist. Otherwise ``elemix.config.json``
    is looked up in the target directory and its ancestors; without one the
    defaults apply.
    """
    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(f"Config file {config_path} does not exist")
        config_file = config_path
    else:
        config_file = _find_config_file(target_path)
        if config_file is None:
            return AnalyserConfig()

    data = _read_config(config_file)
    config = AnalyserConfig(source=config_file)
    for key, value in data.items():
        attribute = _KEY_MAP.get(key)
        if attribute is None:
            logger.debug("Ignoring unknown config key %r in %s", key, config_file)
            continue
        if not _has_expected_type(getattr(config, attribute), value):
            logger.warning("Invalid value for %r in %s, using default", key, config_file)
            continue
        setattr(config, attribute, value)
    return config


def _find_config_file(target_path: Path) -> Optional[Path]:
    current = target_path.resolve()
    if current.is_file():
        current = current.parent
    while True:
        candidate = current / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def _read_config(config_file: Path) -> Dict[str, Any]:
    try:
        with open(config_file, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read %s (%s), using defaults", config_file, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config %s must contain a JSON object, using defaults", config_file)
        return {}
    return data


def _has_expected_type(default: Any, value: Any) -> bool:
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, str):
        return isinstance(value, str) and bool(value)
    if isinstance(default, list):
        return isinstance(value, list) and all(isinstance(item, str) for item in value)
    return True


__all__ = ["AnalyserConfig", "ConfigError", "CONFIG_FILE_NAME", "load_config"]
