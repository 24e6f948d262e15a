"""Configuration loading for manifestgen (.manifestgen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

CONFIG_FILENAME = ".manifestgen.yml"
DEFAULT_OUTPUT_FILE = "package.xml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class OrgConfig:
    """Connection settings for the target org."""

    instance_url: Optional[str] = None
    access_token: Optional[str] = None
    request_timeout: Optional[float] = None


@dataclass
class ManifestDefaults:
    """Manifest build defaults; command-line flags override these."""

    exclude_managed: Optional[bool] = None
    api_version: Optional[str] = None
    quick_filters: List[str] = field(default_factory=list)
    output_file: Optional[str] = None


@dataclass
class ManifestGenConfig:
    """Represents the settings defined in .manifestgen.yml."""

    root: Path
    org: OrgConfig = field(default_factory=OrgConfig)
    manifest: ManifestDefaults = field(default_factory=ManifestDefaults)


@dataclass(frozen=True)
class BuildConfig:
    """Run-scoped, read-only settings for one manifest build."""

    api_version: str
    quick_filters: Tuple[str, ...] = ()
    exclude_managed: bool = False
    output_file: Path = Path(DEFAULT_OUTPUT_FILE)

    def includes(self, type_name: str) -> bool:
        """Return True when the quick filters admit the given type."""
        return not self.quick_filters or type_name in self.quick_filters

    @classmethod
    def from_flags(
        cls,
        flags: Mapping[str, Any],
        api_version: str,
        defaults: ManifestDefaults | None = None,
    ) -> "BuildConfig":
        """Merge flags over file defaults; flags always take precedence."""
        defaults = defaults or ManifestDefaults()

        exclude_managed = _as_bool(flags.get("excludemanaged"))
        if exclude_managed is None:
            exclude_managed = bool(defaults.exclude_managed)

        version = _as_str(flags.get("apiversion")) or defaults.api_version or api_version

        quick_filters = _split_filters(flags.get("quickfilter"))
        if not quick_filters:
            quick_filters = _split_filters(defaults.quick_filters)

        output_file = (
            _as_str(flags.get("outputfile")) or defaults.output_file or DEFAULT_OUTPUT_FILE
        )

        return cls(
            api_version=str(version),
            quick_filters=tuple(quick_filters),
            exclude_managed=exclude_managed,
            output_file=Path(output_file),
        )


def load_config(config_path: Path) -> ManifestGenConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ManifestGenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    org_data = _as_dict(data.get("org"))
    org = OrgConfig(
        instance_url=_as_str(org_data.get("instance_url")),
        access_token=_as_str(org_data.get("access_token")),
        request_timeout=_as_float(org_data.get("request_timeout")),
    )

    manifest_data = _as_dict(data.get("manifest"))
    output_file = _as_str(manifest_data.get("outputfile"))
    manifest = ManifestDefaults(
        exclude_managed=_as_bool(manifest_data.get("excludemanaged")),
        api_version=_as_str(manifest_data.get("apiversion")),
        quick_filters=_split_filters(manifest_data.get("quickfilter")),
        output_file=str(root / output_file) if output_file else None,
    )

    return ManifestGenConfig(root=root, org=org, manifest=manifest)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _split_filters(value: Any) -> List[str]:
    if isinstance(value, str):
        items: Sequence[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return []
    return [str(item).strip() for item in items if str(item).strip()]


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) and str(value) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


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


__all__ = [
    "BuildConfig",
    "ConfigError",
    "ManifestDefaults",
    "ManifestGenConfig",
    "OrgConfig",
    "load_config",
]
