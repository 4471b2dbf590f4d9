"""Configuration loading for nativegen (.nativegen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .naming import DEFAULT_FILE_SUFFIX, DEFAULT_TYPE_PREFIX

CONFIG_FILE_NAME = ".nativegen.yml"
DEFAULT_OUTPUT_DIR = Path("generated") / "native_data"
DROP_POLICIES = ("warn", "silent")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class NamingConfig:
    """Prefix and suffix applied to generated types and files."""

    type_prefix: str = DEFAULT_TYPE_PREFIX
    file_suffix: str = DEFAULT_FILE_SUFFIX


@dataclass
class DiscoveryConfig:
    """Where to look for marked source types."""

    modules: List[str] = field(default_factory=list)
    entry_points: bool = True


@dataclass
class GeneratorConfig:
    """Represents the settings defined in .nativegen.yml."""

    root: Path
    output_dir: Path
    naming: NamingConfig = field(default_factory=NamingConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    drop_policy: str = "warn"
    templates_dir: Optional[Path] = None

    @classmethod
    def defaults(cls, root: Path) -> "GeneratorConfig":
        return cls(root=root, output_dir=root / DEFAULT_OUTPUT_DIR)


def load_config(config_path: Path) -> GeneratorConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return GeneratorConfig.defaults(root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILE_NAME} must contain a mapping at the root")

    output_dir_str = _as_str(data.get("output_dir"))
    output_dir = root / (output_dir_str or DEFAULT_OUTPUT_DIR)

    naming = NamingConfig()
    naming_data = _as_dict(data.get("naming"))
    if naming_data:
        prefix = _as_str(naming_data.get("type_prefix"))
        suffix = _as_str(naming_data.get("file_suffix"))
        if prefix is not None:
            naming.type_prefix = prefix
        if suffix is not None:
            naming.file_suffix = suffix
    if naming.type_prefix and not naming.type_prefix.isidentifier():
        raise ConfigError(f"naming.type_prefix must be a valid identifier, got {naming.type_prefix!r}")

    discovery = DiscoveryConfig()
    discovery_data = _as_dict(data.get("discovery"))
    if discovery_data:
        discovery.modules = _as_str_list(discovery_data.get("modules"))
        entry_points = _as_bool(discovery_data.get("entry_points"))
        if entry_points is not None:
            discovery.entry_points = entry_points

    drop_policy = (_as_str(data.get("drop_policy")) or "warn").lower()
    if drop_policy not in DROP_POLICIES:
        allowed = ", ".join(DROP_POLICIES)
        raise ConfigError(f"drop_policy must be one of {allowed}, got {drop_policy!r}")

    templates_dir_str = _as_str(data.get("templates_dir"))
    templates_dir = root / templates_dir_str if templates_dir_str else None

    return GeneratorConfig(
        root=root,
        output_dir=output_dir,
        naming=naming,
        discovery=discovery,
        drop_policy=drop_policy,
        templates_dir=templates_dir,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILE_NAME).resolve()
    if config_path.name != CONFIG_FILE_NAME:
        return (config_path.parent / CONFIG_FILE_NAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "DiscoveryConfig",
    "GeneratorConfig",
    "NamingConfig",
    "load_config",
]
