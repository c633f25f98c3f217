"""JWT issuance and revocation for portal identities.

Access and refresh tokens are HS256 JWTs carrying the identity id (``sub``),
its role, the account's ``token_version`` (``ver``) and a unique ``jti``.
A token is dead when its ``jti`` is on the Redis blocklist or its ``ver`` no
longer matches the account. Blocklist failures are fail-closed.
"""

import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Tuple

import jwt
import redis
from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed

from core.redis_client import get_redis_client

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


class BlocklistUnavailable(Exception):
    """Redis could not be reached to read or write the blocklist."""


class TokenService:
    ALGORITHM = "HS256"
    BLOCKLIST_PREFIX = "blocklist:token:"

    @classmethod
    def lifetimes(cls) -> dict[str, timedelta]:
        return {
            ACCESS: timedelta(minutes=settings.JWT_ACCESS_TTL_MINUTES),
            REFRESH: timedelta(hours=settings.JWT_REFRESH_TTL_HOURS),
        }

    @classmethod
    def generate_tokens(cls, user) -> Tuple[str, str]:
        """Return a signed ``(access, refresh)`` pair for ``user``."""

        issued_at = datetime.now(timezone.utc)
        lifetimes = cls.lifetimes()
        return (
            cls._sign(cls._claims(user, ACCESS, issued_at, lifetimes[ACCESS])),
            cls._sign(cls._claims(user, REFRESH, issued_at, lifetimes[REFRESH])),
        )

    @staticmethod
    def _claims(user, token_type: str, issued_at: datetime, ttl: timedelta) -> dict[str, Any]:
        return {
            "sub": str(user.id),
            "role": user.role,
            "ver": user.token_version,
            "type": token_type,
            "jti": uuid.uuid4().hex,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + ttl).timestamp()),
        }

    @classmethod
    def _sign(cls, claims: dict[str, Any]) -> str:
        return jwt.encode(claims, settings.SECRET_KEY, algorithm=cls.ALGORITHM)

    @classmethod
    def decode_token(cls, token: str, expected_type: str | None = None) -> dict[str, Any]:
        """Verify signature and expiry; raise ``AuthenticationFailed`` otherwise."""

        try:
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[cls.ALGORITHM],
                options={"require": ["sub", "jti", "exp", "type"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationFailed("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationFailed("Invalid token") from exc

        if expected_type and payload["type"] != expected_type:
            raise AuthenticationFailed("Invalid token type")
        return payload

    @staticmethod
    def is_current(payload: dict[str, Any], user) -> bool:
        """True while the token's version matches the account's."""
        return payload.get("ver") == user.token_version

    @classmethod
    def block_token(cls, jti: str, exp: int) -> None:
        """Blocklist ``jti`` until the token would have expired anyway."""

        ttl_seconds = max(1, exp - int(time.time()))
        try:
            get_redis_client().setex(f"{cls.BLOCKLIST_PREFIX}{jti}", ttl_seconds, "1")
        except redis.RedisError as exc:
            raise BlocklistUnavailable("Redis unavailable while blocklisting") from exc
        logger.info("Blocklisted token %s for %ss", jti, ttl_seconds)

    @classmethod
    def revoke(cls, token: str) -> None:
        """Decode an access token and blocklist it."""
        payload = cls.decode_token(token, expected_type=ACCESS)
        cls.block_token(payload["jti"], payload["exp"])

    @classmethod
    def is_token_blocked(cls, jti: str) -> bool:
        try:
            return get_redis_client().get(f"{cls.BLOCKLIST_PREFIX}{jti}") is not None
        except redis.RedisError as exc:
            raise BlocklistUnavailable("Redis unavailable while checking blocklist") from exc


__all__ = ["TokenService", "BlocklistUnavailable", "ACCESS", "REFRESH"]
