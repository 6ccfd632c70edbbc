"""Core utilities for the LSPD roster service."""

from lspd.core.config import OrgConfig, get_cosmos_database, get_org_config, local_now
from lspd.core.roles import is_high_command, normalize_role

__all__ = [
    "OrgConfig",
    "get_cosmos_database",
    "get_org_config",
    "is_high_command",
    "local_now",
    "normalize_role",
]
