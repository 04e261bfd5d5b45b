"""JWT session tokens and the worker-to-worker shared-secret check.

Uses PyJWT; tokens carry userId and keyId plus iat/exp. Expiry is the only
invalidation mechanism, there is no revocation list.
"""
import hmac
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

import jwt
import structlog

from authsvc.core.errors import InvalidToken

log = structlog.get_logger()

DEFAULT_TTL = timedelta(hours=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        default_ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._default_ttl = default_ttl
        self._clock = clock

    def issue(self, claims: Dict[str, str], ttl: Optional[timedelta] = None) -> str:
        """Create a signed token for {userId, keyId} that expires after ttl."""
        now = self._clock()
        payload = {
            "userId": str(claims["userId"]),
            "keyId": str(claims["keyId"]) if claims.get("keyId") is not None else None,
            "iat": now,
            "exp": now + (ttl or self._default_ttl),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Dict[str, str]:
        """Decode a token, raising InvalidToken if it is malformed, mis-signed or expired."""
        if not token:
            raise InvalidToken()
        try:
            # Time claims are checked below against the service clock, not the wall clock
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidTokenError as e:
            log.info("token_invalid", reason=type(e).__name__)
            raise InvalidToken() from None

        try:
            expires_at = float(payload["exp"])
        except (TypeError, ValueError):
            raise InvalidToken() from None
        if expires_at <= self._clock().timestamp():
            log.info("token_expired")
            raise InvalidToken("Token has expired")

        user_id = payload.get("userId")
        if not user_id:
            raise InvalidToken()
        return {"userId": user_id, "keyId": payload.get("keyId")}


def check_worker_token(presented: Optional[str], configured: str) -> bool:
    """Constant-time comparison of a worker token against the configured secret."""
    if not configured or presented is None:
        return False
    return hmac.compare_digest(presented.encode("utf-8"), configured.encode("utf-8"))
