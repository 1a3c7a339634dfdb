"""Signed access and refresh tokens.

Claims carried by every token:
    - ``sub``     -- the user id as a string (JWT convention).
    - ``user_id`` -- the same id as an integer.
    - ``type``    -- ``"access"`` or ``"refresh"``.
    - ``iat`` / ``exp`` -- issued-at and expiry, UTC epoch seconds.

Access tokens also carry ``email``. Refresh tokens are issued at login but
there is no endpoint that redeems them yet.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from . import errors

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    token_type: str
    issued_at: datetime
    expires_at: datetime
    email: Optional[str] = None


class TokenManager:
    """Issues and validates HMAC-signed JWTs.

    Holds nothing but the secret and TTLs, so one instance is shared by
    every request.
    """

    def __init__(
        self,
        secret: str,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
    ):
        if not secret:
            raise ValueError("secret must be a non-empty string")
        self._secret = secret
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl
        self._algorithm = algorithm

    def generate_access_token(self, user_id: int, email: str) -> str:
        return self._sign(user_id, ACCESS, self._access_ttl, email=email)

    def generate_refresh_token(self, user_id: int) -> str:
        return self._sign(user_id, REFRESH, self._refresh_ttl)

    def validate_token(self, token: str) -> TokenClaims:
        """Verify signature, algorithm and expiry.

        Raises:
            errors.ExpiredToken: the ``exp`` claim has passed.
            errors.InvalidToken: any other verification failure.
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            raise errors.ExpiredToken() from exc
        except JWTError as exc:
            raise errors.InvalidToken() from exc

        try:
            return TokenClaims(
                user_id=int(payload["user_id"]),
                token_type=str(payload["type"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                email=payload.get("email"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise errors.InvalidToken("token is missing required claims") from exc

    def _sign(self, user_id: int, token_type: str, ttl: timedelta, email: Optional[str] = None) -> str:
        now = datetime.now(timezone.utc)
        to_encode: dict[str, Any] = {
            "sub": str(user_id),
            "user_id": int(user_id),
            "type": token_type,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        if email is not None:
            to_encode["email"] = email
        return jwt.encode(to_encode, self._secret, algorithm=self._algorithm)


__all__ = ["ACCESS", "REFRESH", "TokenClaims", "TokenManager"]
