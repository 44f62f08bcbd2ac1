"""
WorkOS access token verification.

Access tokens are RS256 JWTs signed with keys published at the client's JWKS
endpoint. The JWK client is cached so keys are fetched once per process and
refreshed only when an unknown `kid` shows up.
"""

from functools import lru_cache
from typing import Any

import jwt

from apps.core.auth import IdentityClaims
from apps.core.exceptions import Unauthenticated
from apps.core.logging import get_logger
from config.settings.base import settings

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_jwks_client() -> jwt.PyJWKClient:
    """Get the JWKS client for the configured WorkOS client id (singleton)."""
    return jwt.PyJWKClient(settings.jwks_url, cache_keys=True)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify signature and expiry of an access token and return its payload.

    Raises:
        Unauthenticated: Token is malformed, expired, or signed with an unknown key
    """
    try:
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            options={"require": ["exp", "sub"], "verify_aud": False},
        )
    except jwt.ExpiredSignatureError:
        logger.info("access_token_expired")
        raise Unauthenticated("Token has expired") from None
    except (jwt.InvalidTokenError, jwt.PyJWKClientError) as e:
        logger.warning("access_token_invalid", error=str(e))
        raise Unauthenticated("Invalid token") from None


def verify_access_token(token: str) -> IdentityClaims:
    """Verify an access token and return its identity claims."""
    return IdentityClaims.from_payload(decode_access_token(token))
