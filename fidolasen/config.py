"""
Process-wide settings.

Defaults can be overridden with environment variables or at runtime
with :func:`configure`.
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any

logger = logging.getLogger(__name__)

_ENV_PREFIX = "FIDOLASEN_"


@dataclass(frozen=True)
class Settings:
    """
    Defaults used when a function argument is not given.

    Attributes:
        gdal_dir: Directory holding the GDAL utilities (None: search PATH)
        compress: GeoTIFF compression for written rasters
        vrt_dirname: Name of the hidden directory for intermediate VRTs,
                     created next to the SAFE products
    """

    gdal_dir: str | None = None
    compress: str = "DEFLATE"
    vrt_dirname: str = ".vrt"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from FIDOLASEN_* environment variables."""
        values: dict[str, Any] = {}
        for f in fields(cls):
            env_value = os.environ.get(_ENV_PREFIX + f.name.upper())
            if env_value:
                values[f.name] = env_value
        return cls(**values)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the active settings (read from the environment on first use)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def configure(**kwargs: Any) -> Settings:
    """
    Override settings for the current process.

    Examples:
        >>> configure(gdal_dir="/usr/local/bin", compress="LZW")
    """
    global _settings
    _settings = replace(get_settings(), **kwargs)
    logger.debug("Updated settings: %s", _settings)
    return _settings


def reset_settings() -> None:
    """Forget runtime overrides; the environment is read again on next use."""
    global _settings
    _settings = None
