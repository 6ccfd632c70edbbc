"""Configuration loading utilities."""

import json
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

DEFAULT_HIGH_COMMAND_ROLES: tuple[str, ...] = (
    "staff-commander",
    "executive-commander",
    "deputy-chief",
    "assistant-chief",
    "chief-of-police",
    "director",
    "admin",
)


@dataclass
class OrgConfig:
    """Organization configuration loaded from config/organization.json.

    All org-specific data lives here rather than in code, so
    customization requires only editing the JSON file.
    """

    company_name: str
    domain: str
    timezone: str = "UTC"
    cosmos_database: str = ""
    profiles_container: str = "profiles"
    high_command_roles: frozenset[str] = field(
        default_factory=lambda: frozenset(DEFAULT_HIGH_COMMAND_ROLES)
    )
    cors_origins: tuple[str, ...] = ()


def get_project_root() -> Path:
    """Get the project root directory."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "pyproject.toml").exists():
            return parent
    raise RuntimeError("Could not find project root (no pyproject.toml found)")


def load_org_config() -> OrgConfig:
    """Load organization configuration from config file.

    Returns:
        OrgConfig with the organization name, storage and role settings

    Raises:
        FileNotFoundError: If config/organization.json does not exist
    """
    project_root = get_project_root()
    config_path = project_root / "config" / "organization.json"

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open() as f:
        config_data = json.load(f)

    return OrgConfig(
        company_name=config_data["company_name"],
        domain=config_data["domain"],
        timezone=config_data.get("timezone", "UTC"),
        cosmos_database=config_data.get("cosmos_database", ""),
        profiles_container=config_data.get("profiles_container", "profiles"),
        high_command_roles=frozenset(
            r.strip().lower()
            for r in config_data.get("high_command_roles", DEFAULT_HIGH_COMMAND_ROLES)
        ),
        cors_origins=tuple(config_data.get("cors_origins", ())),
    )


# Cached config instance
_org_config: OrgConfig | None = None


def get_org_config() -> OrgConfig:
    """Get cached organization config.

    Loads config once and caches it for subsequent calls.
    """
    global _org_config
    if _org_config is None:
        _org_config = load_org_config()
    return _org_config


def get_cosmos_database() -> str:
    """Get Cosmos DB database name.

    Reads from ``COSMOS_DATABASE`` env var first (for Container Apps),
    falls back to ``organization.json``.
    """
    return os.getenv("COSMOS_DATABASE") or get_org_config().cosmos_database


def get_firebase_project_id() -> str:
    """Get the Firebase project ID used to validate ID tokens.

    Empty string means auth is not configured (dev mode).
    """
    load_dotenv()
    return os.getenv("FIREBASE_PROJECT_ID", "")


def get_timezone() -> ZoneInfo:
    """Get organization timezone as a ZoneInfo object."""
    return ZoneInfo(get_org_config().timezone)


def local_now() -> datetime:
    """Current time in the organization's timezone."""
    return datetime.now(get_timezone())
