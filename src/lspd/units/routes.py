"""HTTP route handlers for unit management.

Routes:
- POST /api/unit-management        → Apply one membership/rank action (JSON)
- GET  /api/units/{unit}/members   → Unit roster (JSON)
"""

import json
import logging

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from lspd.auth import authenticate
from lspd.profiles.store import ProfileStore
from lspd.units.errors import InvalidRequest, UnitManagementError
from lspd.units.management import ManagementRequest, list_unit_members, manage_unit
from lspd.units.registry import describe_level

logger = logging.getLogger(__name__)


def _error_response(error: UnitManagementError) -> JSONResponse:
    return JSONResponse(error.to_dict(), status_code=error.status)


async def unit_management(request: Request) -> Response:
    """Apply a membership or rank change to one officer."""
    try:
        caller = authenticate(request.headers)

        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidRequest("Request body must be valid JSON") from e
        management_request = ManagementRequest.parse(payload)

        async with ProfileStore() as store:
            result = await manage_unit(store, caller, management_request)
    except UnitManagementError as e:
        return _error_response(e)
    except Exception:
        logger.exception("Unit management failed")
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    return JSONResponse(result.to_dict())


async def unit_members(request: Request) -> Response:
    """Return the roster of a unit along with the caller's own permission."""
    unit = request.path_params["unit"]
    try:
        caller = authenticate(request.headers)
        async with ProfileStore() as store:
            permission, members = await list_unit_members(store, caller, unit)
    except UnitManagementError as e:
        return _error_response(e)
    except Exception:
        logger.exception("Unit roster lookup failed for %s", unit)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    return JSONResponse(
        {
            "unit": permission.unit,
            "permission": {
                "level": permission.level,
                "levelLabel": describe_level(permission.level),
                "manageableRanks": permission.manageable,
                "highCommand": permission.high_command,
            },
            "members": [m.to_dict() for m in members],
        }
    )
