"""Unit management: who may add or remove members and ranks, and applying it.

Request flow for one management action::

    resolve caller permission in the unit
      → deny below Deputy level
      → load target profile
      → evaluate the action (permissions.can_perform)
      → compute the new state (mutator.apply_action)
      → write only if something changed (etag-guarded)

Organization-wide high command is checked first and separately from unit
ranks: it gives Caretaker level and the full rank ladder in every unit.
It comes from the caller's department role, which this module never writes.

The whole request is validated before anything is written, so a denied or
malformed request never leaves a partial change behind.
"""

import logging
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from lspd.auth import UserContext
from lspd.core.config import local_now
from lspd.core.roles import is_high_command
from lspd.profiles.models import OfficerRecord
from lspd.profiles.store import ProfileStore
from lspd.units.errors import Forbidden, InvalidRequest, NotFound
from lspd.units.mutator import apply_action
from lspd.units.permissions import (
    Action,
    can_perform,
    full_manageable_ranks,
    manageable_ranks,
    permission_level,
)
from lspd.units.registry import Tier, describe_level, get_rank, get_unit

logger = logging.getLogger(__name__)


class ManagementRequest(BaseModel):
    """A single unit management action on one officer."""

    model_config = ConfigDict(populate_by_name=True)

    unit: str
    target_uid: str = Field(alias="targetUid", min_length=1)
    action: Action
    rank: str | None = None

    @field_validator("unit", "target_uid", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("rank", mode="before")
    @classmethod
    def _normalize_rank(cls, value):
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @classmethod
    def parse(cls, payload: object) -> "ManagementRequest":
        """Validate a raw request body.

        Raises:
            InvalidRequest: For malformed bodies, unknown actions, missing or
                unknown ranks
            NotFound: For unknown units
        """
        if not isinstance(payload, dict):
            raise InvalidRequest("Request body must be a JSON object")
        try:
            request = cls.model_validate(payload)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise InvalidRequest(f"Invalid {location or 'request'}: {first['msg']}") from e

        if request.action.needs_rank:
            if not request.rank:
                raise InvalidRequest(f"Action {request.action.value} requires a rank")
            if get_rank(request.rank) is None:
                raise InvalidRequest(f"Unknown rank: {request.rank}")

        unit_def = get_unit(request.unit)
        if unit_def is None:
            raise NotFound(f"Unknown unit: {request.unit}")
        request.unit = unit_def.id
        return request


@dataclass(frozen=True)
class CallerPermission:
    """What the caller may do within one unit."""

    uid: str
    unit: str
    level: int
    manageable: list[str] = field(default_factory=list)
    high_command: bool = False


@dataclass(frozen=True)
class ManagementResult:
    """Outcome of a successful management action."""

    uid: str
    units: list[str]
    ranks: list[str]
    changed: bool

    def to_dict(self) -> dict:
        """JSON body for the response."""
        body = {
            "ok": True,
            "changed": self.changed,
            "member": {
                "uid": self.uid,
                "units": self.units,
                "additionalRanks": self.ranks,
            },
        }
        if not self.changed:
            body["message"] = "No changes"
        return body


def resolve_caller_permission(caller: OfficerRecord, unit: str) -> CallerPermission:
    """Compute the caller's effective permission in a unit.

    High command gets Caretaker level and the full ladder regardless of
    unit membership; everyone else gets what their own ranks give them.
    """
    if is_high_command(caller.role):
        return CallerPermission(
            uid=caller.id,
            unit=unit,
            level=int(Tier.CARETAKER),
            manageable=full_manageable_ranks(unit),
            high_command=True,
        )
    return CallerPermission(
        uid=caller.id,
        unit=unit,
        level=permission_level(unit, caller.units, caller.additional_ranks),
        manageable=manageable_ranks(unit, caller.additional_ranks),
    )


async def load_caller_permission(
    store: ProfileStore, caller: UserContext, unit: str
) -> CallerPermission:
    """Load the caller's profile and resolve their permission in a unit.

    Raises:
        Forbidden: If the caller has no profile or no relation to the unit
    """
    profile = await store.get(caller.user_id)
    if profile is None:
        logger.info("Caller %s has no profile", caller.user_id)
        raise Forbidden("No officer profile for your account")

    permission = resolve_caller_permission(profile, unit)
    if permission.level < 1:
        raise Forbidden("You don't have access to this unit")
    return permission


async def manage_unit(
    store: ProfileStore, caller: UserContext, request: ManagementRequest
) -> ManagementResult:
    """Run one management action end to end.

    Args:
        store: Open profile store
        caller: Authenticated caller
        request: Validated request

    Returns:
        ManagementResult with the target's resulting units and ranks

    Raises:
        Forbidden: Caller below Deputy level or the action was denied
        NotFound: Target profile does not exist
        Conflict: Target profile changed while the request was processed
    """
    unit = request.unit
    permission = await load_caller_permission(store, caller, unit)
    if permission.level < int(Tier.DEPUTY):
        raise Forbidden("You don't have permission to manage officers in this unit")

    target = await store.get(request.target_uid)
    if target is None:
        raise NotFound("Officer profile not found")

    target_level = permission_level(unit, target.units, target.additional_ranks)
    verdict = can_perform(
        request.action,
        unit,
        permission.level,
        permission.manageable,
        target_level,
        rank=request.rank,
    )
    if not verdict.allowed:
        logger.info(
            "Denied %s %s on %s by %s (level %d, %s): %s",
            request.action.value,
            unit,
            target.id,
            caller.user_id,
            permission.level,
            describe_level(permission.level),
            verdict.reason.value,
        )
        raise Forbidden(verdict.message, reason=verdict.reason.value)

    result = apply_action(target, unit, request.action, request.rank)
    if not result.changed:
        logger.info(
            "No change for %s %s on %s by %s", request.action.value, unit, target.id, caller.user_id
        )
        return ManagementResult(
            uid=target.id, units=target.units, ranks=target.additional_ranks, changed=False
        )

    updated = await store.patch(target.id, result.patch(local_now()), etag=target.etag)
    logger.info(
        "%s %s%s on %s by %s%s",
        request.action.value,
        unit,
        f" ({request.rank})" if request.rank else "",
        target.id,
        caller.user_id,
        " [high command]" if permission.high_command else "",
    )
    return ManagementResult(
        uid=updated.id, units=updated.units, ranks=updated.additional_ranks, changed=True
    )


@dataclass(frozen=True)
class UnitMember:
    """One row of a unit roster."""

    uid: str
    login: str
    full_name: str
    badge_number: str | None
    level: int
    ranks: list[str]

    def to_dict(self) -> dict:
        body = {
            "uid": self.uid,
            "login": self.login,
            "fullName": self.full_name,
            "level": self.level,
            "levelLabel": describe_level(self.level),
            "ranks": self.ranks,
        }
        if self.badge_number:
            body["badgeNumber"] = self.badge_number
        return body


async def list_unit_members(
    store: ProfileStore, caller: UserContext, unit: str
) -> tuple[CallerPermission, list[UnitMember]]:
    """List every officer with their level in a unit, for the unit roster panel.

    Only officers holding a rank in the unit (or high command) may view the
    roster. It includes officers outside the unit so that leaders can pick
    candidates to add.

    Args:
        store: Open profile store
        caller: Authenticated caller
        unit: Unit ID (case insensitive)

    Returns:
        The caller's permission and the roster sorted by name

    Raises:
        NotFound: Unknown unit
        Forbidden: Caller holds no rank in the unit
    """
    unit_def = get_unit(unit)
    if unit_def is None:
        raise NotFound(f"Unknown unit: {unit}")

    permission = await load_caller_permission(store, caller, unit_def.id)
    if permission.level < int(Tier.DEPUTY):
        raise Forbidden("You don't have permission to view this unit's roster")

    members = []
    for record in await store.list_all():
        level = permission_level(unit_def.id, record.units, record.additional_ranks)
        members.append(
            UnitMember(
                uid=record.id,
                login=record.login,
                full_name=record.display_name,
                badge_number=record.badge_number,
                level=level,
                ranks=[r for r in record.additional_ranks if r in unit_def.ranks],
            )
        )
    members.sort(key=lambda m: m.full_name.casefold())
    return permission, members
