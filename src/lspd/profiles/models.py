"""Pydantic models for officer profile documents stored in Cosmos DB."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from lspd.core.roles import DEFAULT_ROLE, normalize_role
from lspd.units.registry import normalize_ranks, normalize_units


class OfficerRecord(BaseModel):
    """One officer's profile as far as unit management is concerned.

    Documents use the camelCase field names of the profile collection;
    Python code uses the snake_case attribute names.

    ``additional_ranks`` keeps insertion order: the first element is the
    legacy "primary rank" (``additionalRank``) read by older consumers.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    login: str = ""
    email: str = ""
    full_name: str = Field("", alias="fullName")
    badge_number: str | None = Field(None, alias="badgeNumber")
    role: str = DEFAULT_ROLE
    department: str | None = None
    units: list[str] = []
    additional_ranks: list[str] = Field(default_factory=list, alias="additionalRanks")
    updated_at: datetime | None = Field(None, alias="updatedAt")

    # Storage version tag (Cosmos ``_etag``), never written back as a field
    etag: str | None = Field(None, exclude=True)

    @property
    def primary_rank(self) -> str | None:
        """Legacy single-rank projection: first held rank, or None."""
        return self.additional_ranks[0] if self.additional_ranks else None

    @property
    def display_name(self) -> str:
        """Full name, falling back to the login."""
        return self.full_name or self.login or self.id

    def to_cosmos(self) -> dict:
        """Serialize for Cosmos DB storage."""
        data = self.model_dump(mode="json", by_alias=True)
        data["additionalRank"] = self.primary_rank
        return data

    @classmethod
    def from_cosmos(cls, data: dict) -> "OfficerRecord":
        """Deserialize from a Cosmos DB document.

        Normalizes legacy shapes: a single ``additionalRank`` string when
        ``additionalRanks`` is absent, unknown units or ranks, and profiles
        without a login.
        """
        uid = str(data.get("id") or data.get("uid") or "")
        email = data.get("email") if isinstance(data.get("email"), str) else ""
        login = data.get("login").strip() if isinstance(data.get("login"), str) else ""
        if not login and "@" in email:
            login = email.split("@")[0]
        full_name = data.get("fullName")
        full_name = full_name.strip() if isinstance(full_name, str) else ""
        badge = data.get("badgeNumber")

        raw_ranks = data.get("additionalRanks")
        if raw_ranks is None:
            raw_ranks = data.get("additionalRank")

        return cls(
            id=uid,
            login=login or uid,
            email=email.lower(),
            full_name=full_name or login or uid,
            badge_number=badge.strip() if isinstance(badge, str) and badge.strip() else None,
            role=normalize_role(data.get("role")),
            department=data.get("department") if isinstance(data.get("department"), str) else None,
            units=normalize_units(data.get("units")),
            additional_ranks=normalize_ranks(raw_ranks),
            updated_at=_parse_timestamp(data.get("updatedAt")),
            etag=data.get("_etag"),
        )


def _parse_timestamp(value: object) -> datetime | None:
    """Read a stored timestamp, dropping values older writers left in other shapes."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None
