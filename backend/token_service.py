"""
Bearer credential issuing and verification (stateless JWT).
Revocation is not supported: a token stays valid until it expires.
"""

from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt

TOKEN_TYPE = "access"


class TokenService:
    def __init__(self, secret: str, algorithm: str = "HS256", expiration_days: int = 7):
        self._secret = secret
        self._algorithm = algorithm
        self._lifetime = timedelta(days=expiration_days)

    def issue(self, user_id: str) -> str:
        """Create a signed token asserting user_id"""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + self._lifetime,
            "type": TOKEN_TYPE,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: Optional[str]) -> Optional[str]:
        """Return the user id in a valid token, or None for any bad/expired token"""
        if not token or not isinstance(token, str):
            return None
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.InvalidTokenError:
            # ExpiredSignatureError and DecodeError are both InvalidTokenError
            return None

        if payload.get("type") != TOKEN_TYPE:
            return None
        user_id = payload.get("sub")
        if not isinstance(user_id, str) or not user_id:
            return None
        return user_id


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an `Authorization: Bearer <token>` header value"""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[7:].strip()
    return token or None
