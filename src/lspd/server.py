"""LSPD roster API server.

Serves the unit management endpoints. Authenticated with Firebase ID tokens.

Run locally::

    uv run roster-server

Or with uvicorn::

    uv run uvicorn lspd.server:app --host 0.0.0.0 --port 8000
"""

import logging
import os

from dotenv import load_dotenv
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from lspd.core.config import get_firebase_project_id, get_org_config
from lspd.units.routes import unit_management, unit_members

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Logging (module-level so it runs on import; uvicorn reimports for the app)
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
# Silence Azure SDK HTTP-level noise (request/response headers)
logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(logging.WARNING)
logging.getLogger("azure.cosmos._cosmos_http_logging_policy").setLevel(logging.WARNING)
logging.getLogger("azure.identity").setLevel(logging.WARNING)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

load_dotenv()

ORG = get_org_config()

if not get_firebase_project_id():
    if os.getenv("COSMOS_ENDPOINT"):
        logger.error("No FIREBASE_PROJECT_ID with Cosmos DB configured, all requests will be 401")
    else:
        logger.warning("No FIREBASE_PROJECT_ID, callers identified by X-Dev-User header (dev mode)")


async def health(request: Request) -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        {
            "status": "ok",
            "service": "lspd-roster",
            "version": os.getenv("BUILD_VERSION", "dev"),
        }
    )


# ---------------------------------------------------------------------------
# ASGI App assembly
# ---------------------------------------------------------------------------

app = Starlette(
    routes=[
        Route("/health", health, methods=["GET"]),
        Route("/api/unit-management", unit_management, methods=["POST"]),
        Route("/api/units/{unit}/members", unit_members, methods=["GET"]),
    ],
    middleware=[
        Middleware(
            CORSMiddleware,
            allow_origins=list(ORG.cors_origins),
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type"],
        ),
    ],
)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info("Starting %s roster server on %s:%d", ORG.company_name, host, port)
    uvicorn.run(
        "lspd.server:app",
        host=host,
        port=port,
        log_level="info",
    )
