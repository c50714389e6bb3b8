"""Configuration for pybunny.

Settings are resolved from explicit arguments, then environment variables,
then the config file at ``~/.config/pybunny/config``.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Optional

from .exceptions import BunnyConfigError

logger = logging.getLogger(__name__)

API_KEY_ENV = "BUNNY_API_KEY"
STORAGE_ZONE_ENV = "BUNNY_STORAGE_ZONE"
REGION_ENV = "BUNNY_REGION"
CONFIG_PATH_ENV = "PYBUNNY_CONFIG"

DEFAULT_HOST = "storage.bunnycdn.com"


class BunnyRegion(str, Enum):
    """Storage regions; the value is the host prefix of the regional endpoint."""

    FALKENSTEIN = "de"
    LONDON = "uk"
    NEW_YORK = "ny"
    LOS_ANGELES = "la"
    SINGAPORE = "sg"
    STOCKHOLM = "se"
    SAO_PAULO = "br"
    JOHANNESBURG = "jh"
    SYDNEY = "syd"

    @property
    def host(self) -> str:
        """Storage API host name for this region."""
        if self is BunnyRegion.FALKENSTEIN:
            return DEFAULT_HOST
        return f"{self.value}.{DEFAULT_HOST}"

    @classmethod
    def parse(cls, value: str) -> "BunnyRegion":
        """Look up a region by enum name or host code, case-insensitively.

        Raises:
            BunnyConfigError: If no region matches
        """
        normalized = value.strip()
        for region in cls:
            if normalized.upper() == region.name or normalized.lower() == region.value:
                return region
        raise BunnyConfigError(f"Unknown region '{value}'")


class Config:
    """Reads and writes pybunny settings."""

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = config_path

    def get_config_path(self) -> Path:
        """Return the path of the config file."""
        if self._config_path is not None:
            return self._config_path
        override = os.environ.get(CONFIG_PATH_ENV)
        if override:
            return Path(override)
        return Path.home() / ".config" / "pybunny" / "config"

    def _read_file(self) -> dict[str, str]:
        path = self.get_config_path()
        if not path.is_file():
            return {}

        values: dict[str, str] = {}
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            values[key.strip()] = value.strip().strip('"').strip("'")
        return values

    def _get(self, key: str) -> Optional[str]:
        value = os.environ.get(key)
        if value:
            return value
        return self._read_file().get(key) or None

    @property
    def api_key(self) -> Optional[str]:
        return self._get(API_KEY_ENV)

    @property
    def storage_zone(self) -> Optional[str]:
        return self._get(STORAGE_ZONE_ENV)

    @property
    def region(self) -> Optional[str]:
        return self._get(REGION_ENV)

    def is_configured(self) -> bool:
        """Check whether both an API key and a storage zone are available."""
        return bool(self.api_key and self.storage_zone)

    def save(
        self,
        api_key: str,
        storage_zone: str,
        region: Optional[str] = None,
    ) -> Path:
        """Write the settings to the config file.

        Args:
            api_key: Storage zone password (access key)
            storage_zone: Storage zone name
            region: Optional region name or code

        Returns:
            Path of the written config file
        """
        path = self.get_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)

        lines = [f"{API_KEY_ENV}={api_key}", f"{STORAGE_ZONE_ENV}={storage_zone}"]
        if region:
            lines.append(f"{REGION_ENV}={region}")
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        path.chmod(0o600)

        logger.debug(f"Saved configuration to {path}")
        return path

    def resolve(
        self,
        api_key: Optional[str] = None,
        storage_zone: Optional[str] = None,
        region: Optional[str] = None,
    ) -> tuple[str, str, BunnyRegion]:
        """Resolve effective settings, explicit arguments taking precedence.

        Returns:
            Tuple of (api_key, storage_zone, region)

        Raises:
            BunnyConfigError: If the API key or storage zone is missing, or the
                region is unknown
        """
        api_key = api_key or self.api_key
        storage_zone = storage_zone or self.storage_zone
        raw_region = region or self.region

        if not api_key:
            raise BunnyConfigError(
                "API key not specified as parameter (--api-key) "
                f"nor environment variable ({API_KEY_ENV})"
            )
        if not storage_zone:
            raise BunnyConfigError(
                "Storage zone not specified as parameter (--storage-zone) "
                f"nor environment variable ({STORAGE_ZONE_ENV})"
            )

        resolved_region = (
            BunnyRegion.parse(raw_region) if raw_region else BunnyRegion.FALKENSTEIN
        )
        return api_key, storage_zone, resolved_region


config = Config()
