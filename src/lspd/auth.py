"""Firebase ID token validation and caller context.

Validates ID tokens issued by Firebase Authentication and extracts the
caller's identity. Everything else about the caller (units, ranks, role)
comes from their profile document, not from the token.
"""

import logging
import os
from contextvars import ContextVar
from dataclasses import dataclass

import jwt
from cachetools import TTLCache
from jwt import PyJWKClient

from lspd.core.config import get_firebase_project_id
from lspd.units.errors import Unauthenticated

logger = logging.getLogger(__name__)

FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
)
DEV_USER_HEADER = "x-dev-user"

# Context variable holding the authenticated user for the current request
_current_user: ContextVar["UserContext | None"] = ContextVar("current_user", default=None)


@dataclass(frozen=True)
class UserContext:
    """Authenticated caller extracted from the ID token."""

    user_id: str  # Firebase uid, also the profile document ID
    email: str = ""
    name: str = ""


def get_current_user() -> UserContext:
    """Get the authenticated user for the current request.

    Raises:
        RuntimeError: If no user is authenticated in the current context.
    """
    user = _current_user.get()
    if user is not None:
        return user

    raise RuntimeError("No authenticated user in context")


def set_current_user(user: UserContext | None) -> None:
    """Set the authenticated user for the current request."""
    _current_user.set(user)


def extract_bearer_token(headers) -> str:
    """Pull the raw token out of an ``Authorization: Bearer ...`` header.

    Args:
        headers: Request headers (case-insensitive mapping)

    Raises:
        Unauthenticated: If the header is missing or not a bearer token
    """
    header = headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("Missing bearer token")
    return token.strip()


class FirebaseTokenValidator:
    """Validates Firebase ID tokens (RS256 JWTs).

    Uses Google's securetoken JWKS endpoint to verify signatures and
    checks audience and issuer against the Firebase project.
    """

    def __init__(self, project_id: str, *, cache_ttl: int = 60) -> None:
        """Initialize validator.

        Args:
            project_id: Firebase project ID (token audience)
            cache_ttl: Seconds to remember an already-validated token
        """
        self.project_id = project_id
        self.issuer = f"https://securetoken.google.com/{project_id}"
        self._jwks_client: PyJWKClient | None = None
        self._validated: TTLCache[str, UserContext] = TTLCache(maxsize=512, ttl=cache_ttl)

    @property
    def jwks_client(self) -> PyJWKClient:
        """Lazily create and cache the JWKS client."""
        if self._jwks_client is None:
            self._jwks_client = PyJWKClient(FIREBASE_JWKS_URL, cache_keys=True)
        return self._jwks_client

    def validate_token(self, token: str) -> UserContext:
        """Validate an ID token and return the caller.

        Args:
            token: Raw JWT (without "Bearer " prefix)

        Returns:
            UserContext for the token's subject

        Raises:
            Unauthenticated: If the token is invalid or has no subject
        """
        cached = self._validated.get(token)
        if cached is not None:
            return cached

        try:
            signing_key = self.jwks_client.get_signing_key_from_jwt(token)
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.project_id,
                issuer=self.issuer,
            )
        except jwt.PyJWTError as e:
            logger.info("Rejected ID token: %s", e)
            raise Unauthenticated() from e

        uid = payload.get("user_id") or payload.get("sub") or ""
        if not uid:
            raise Unauthenticated()

        email = payload.get("email", "")
        user = UserContext(
            user_id=uid,
            email=email.lower(),
            name=payload.get("name", email.split("@")[0] if email else ""),
        )
        self._validated[token] = user
        return user


_validator: FirebaseTokenValidator | None = None


def get_validator() -> FirebaseTokenValidator | None:
    """Shared validator, or None when auth is not configured (dev mode)."""
    global _validator
    project_id = get_firebase_project_id()
    if not project_id:
        return None
    if _validator is None or _validator.project_id != project_id:
        _validator = FirebaseTokenValidator(project_id)
    return _validator


def authenticate(headers) -> UserContext:
    """Resolve the caller of a request and set it as the current user.

    In dev mode (no ``FIREBASE_PROJECT_ID``) the caller's uid is taken from
    the ``X-Dev-User`` header instead of a token. Dev mode only works
    against the in-memory store; with ``COSMOS_ENDPOINT`` set and no project
    id every request is rejected.

    Raises:
        Unauthenticated: If no valid credential was supplied
    """
    validator = get_validator()
    if validator is None:
        if os.getenv("COSMOS_ENDPOINT"):
            logger.error("FIREBASE_PROJECT_ID is not set but Cosmos DB is configured")
            raise Unauthenticated("Authentication is not configured")
        uid = headers.get(DEV_USER_HEADER, "").strip()
        if not uid:
            raise Unauthenticated("Missing X-Dev-User header (dev mode)")
        user = UserContext(user_id=uid, name="Dev User")
    else:
        user = validator.validate_token(extract_bearer_token(headers))

    set_current_user(user)
    return user
