"""Organization-wide officer roles (the department rank ladder).

Roles are distinct from unit ranks: a role is the officer's position in the
whole department (Cadet through Chief of Police), stored on the profile and
managed by account administration, never by unit management.

High command is derived from the role alone. Unit caretakers can only hand
out unit ranks, so they have no way to grant it.
"""

import logging
import re

from lspd.core.config import get_org_config

logger = logging.getLogger(__name__)

ROLE_VALUES: tuple[str, ...] = (
    "cadet",
    "solo-cadet",
    "officer-i",
    "officer-ii",
    "officer-iii",
    "officer-iii-plus-i",
    "fib",
    "sergeant-i",
    "sergeant-ii",
    "sergeant-iii",
    "lieutenant-i",
    "lieutenant-ii",
    "captain-i",
    "captain-ii",
    "captain-iii",
    "staff-commander",
    "executive-commander",
    "deputy-chief",
    "assistant-chief",
    "chief-of-police",
    "director",
    "admin",
)

DEFAULT_ROLE = ROLE_VALUES[0]

ROLE_LABELS: dict[str, str] = {
    "cadet": "Cadet",
    "solo-cadet": "Solo Cadet",
    "officer-i": "Officer I",
    "officer-ii": "Officer II",
    "officer-iii": "Officer III",
    "officer-iii-plus-i": "Officer III+I",
    "fib": "FIB",
    "sergeant-i": "Sergeant I",
    "sergeant-ii": "Sergeant II",
    "sergeant-iii": "Sergeant III",
    "lieutenant-i": "Lieutenant I",
    "lieutenant-ii": "Lieutenant II",
    "captain-i": "Captain I",
    "captain-ii": "Captain II",
    "captain-iii": "Captain III",
    "staff-commander": "Staff Commander",
    "executive-commander": "Executive Commander",
    "deputy-chief": "Deputy Chief",
    "assistant-chief": "Assistant Chief",
    "chief-of-police": "Chief Of Police",
    "director": "Director",
    "admin": "Admin",
}

# Free-text spellings seen in older profiles
_ROLE_ALIASES: dict[str, str] = {
    "solo cadet": "solo-cadet",
    "officer iii+i": "officer-iii-plus-i",
    "officer iii plus i": "officer-iii-plus-i",
    "officer-iii+i": "officer-iii-plus-i",
    "fib agent": "fib",
    # legacy mappings
    "rookie": "cadet",
    "agent": "officer-i",
    "senior": "sergeant-i",
    "chief": "chief-of-police",
}


def normalize_role(value: object) -> str:
    """Normalize a stored role value to a known role slug.

    Accepts labels ("Chief Of Police"), slugs ("chief-of-police") and
    legacy aliases ("chief"). Anything unrecognized falls back to the
    lowest role so that malformed profiles never gain privileges.

    Args:
        value: Raw role value from a profile document

    Returns:
        One of ``ROLE_VALUES``
    """
    if not isinstance(value, str):
        return DEFAULT_ROLE

    normalized = re.sub(r"\s+", " ", value.strip().lower())
    if not normalized:
        return DEFAULT_ROLE

    alias = _ROLE_ALIASES.get(normalized)
    if alias:
        return alias

    slug = re.sub(r"\s*\+\s*", "+", normalized)
    slug = slug.replace(" ", "-").replace("+", "-plus-")
    slug = re.sub(r"[^a-z0-9-]", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")

    if slug in ROLE_VALUES:
        return slug

    logger.debug("Unrecognized role %r, falling back to %s", value, DEFAULT_ROLE)
    return DEFAULT_ROLE


def role_label(role: str) -> str:
    """Display label for a role slug."""
    return ROLE_LABELS.get(role, role)


def is_high_command(role: str | None) -> bool:
    """Check if a role belongs to organization-wide high command.

    The set of high command roles is configured in organization.json
    (``high_command_roles``).
    """
    if not role:
        return False
    return normalize_role(role) in get_org_config().high_command_roles
