"""
Configuration for the catalogue service.

Settings are read from environment variables. A ``.env`` file in the
working directory is loaded first so local development does not need
exported variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


DEFAULT_CDN_BASE_URL = "https://d2o1uvvg91z7o4.cloudfront.net"
DEFAULT_PAGE_SIZE = 10

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    """Runtime settings for the catalogue service."""

    table_name: Optional[str] = None
    region_name: Optional[str] = None
    scan_page_limit: Optional[int] = None   # Limit per backing-store scan call
    default_page_size: int = DEFAULT_PAGE_SIZE
    cdn_base_url: str = DEFAULT_CDN_BASE_URL
    preload: bool = False                   # Populate the cache at startup
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        return cls(
            table_name=os.getenv("DYNAMODB_TABLE_NAME") or None,
            region_name=os.getenv("AWS_REGION") or None,
            scan_page_limit=_env_int("CATALOG_SCAN_PAGE_LIMIT", None),
            default_page_size=_env_int("CATALOG_DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE),
            cdn_base_url=os.getenv("CATALOG_CDN_BASE_URL", DEFAULT_CDN_BASE_URL).rstrip("/"),
            preload=os.getenv("CATALOG_PRELOAD", "").strip().lower() in _TRUE_VALUES,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        """Raise ``ValueError`` if required settings are missing or invalid."""
        missing: List[str] = []
        if not self.table_name:
            missing.append("DYNAMODB_TABLE_NAME")
        if missing:
            raise ValueError(f"Missing environment variables: {', '.join(missing)}")
        if self.default_page_size < 1:
            raise ValueError("CATALOG_DEFAULT_PAGE_SIZE must be at least 1")
