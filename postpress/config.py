"""Site configuration for postpress.

Configuration lives in ``_config.yml`` at the root of the source directory
and is merged over DEFAULT_CONFIG. The resulting mapping is also exposed to
templates as ``site``.

Key functions:
- load_config: Read and merge the configuration file.
- site_timezone: Resolve the configured timezone name.
"""

from __future__ import annotations

from datetime import timezone, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .content import DEFAULT_PERMALINK
from .errors import ConfigError

CONFIG_FILENAME = "_config.yml"

DEFAULT_CONFIG: dict[str, Any] = {
    "title": "",
    "url": "",
    "baseurl": "",
    "permalink": DEFAULT_PERMALINK,
    "timezone": "UTC",
    "paginate": 0,
    "index_layout": "index",
    "feed_limit": 20,
    "highlight_class": "highlight",
    "exclude": [],
}


def load_config(source_dir: Path, config_path: Path | None = None) -> dict[str, Any]:
    """Load site configuration.

    Args:
        source_dir: Site source directory.
        config_path: Explicit configuration file; defaults to
            ``source_dir/_config.yml``. A missing default file is not an error.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigError: If the file is unreadable, not YAML or not a mapping.
    """
    explicit = config_path is not None
    path = config_path or source_dir / CONFIG_FILENAME
    config = dict(DEFAULT_CONFIG)
    if not path.exists():
        if explicit:
            raise ConfigError(path, "configuration file not found")
        return config
    try:
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(path, f"cannot read configuration: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(path, f"invalid YAML: {exc}") from exc
    if loaded is None:
        return config
    if not isinstance(loaded, dict):
        raise ConfigError(path, "configuration must be a mapping")
    config.update(loaded)
    return config


def site_timezone(config: dict[str, Any]) -> tzinfo:
    """Return the tzinfo for the configured ``timezone`` name.

    Raises:
        ConfigError: If the name is not a known IANA timezone.
    """
    name = str(config.get("timezone") or "UTC")
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(Path(CONFIG_FILENAME), f"unknown timezone '{name}'") from exc
