"""
Identidad del caller: tokens firmados y fallback anónimo.

La política permisiva (sin token -> usuario anónimo) es explícita y se
puede apagar por deployment con ANONYMOUS_FALLBACK_ENABLED=false.
"""

import time
from dataclasses import dataclass
from typing import Optional

import jwt
import structlog

from vitrina.errors import AuthFailure

logger = structlog.get_logger()

ALGORITHM = "HS256"


def get_bearer_token(auth_header: Optional[str]) -> Optional[str]:
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


class TokenIssuer:
    """Emite y valida tokens HS256 con el userId."""

    def __init__(self, secret: str, ttl_seconds: int = 60 * 60 * 24 * 7):
        self._secret = secret
        self.ttl_seconds = ttl_seconds

    def issue(self, user_id: str) -> str:
        now = int(time.time())
        payload = {
            "userId": str(user_id),
            "iat": now,
            "exp": now + self.ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def decode(self, token: str) -> Optional[str]:
        """Devuelve el userId del token, o None si es inválido o expiró."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except jwt.PyJWTError as e:
            logger.debug("Token inválido", error=str(e))
            return None
        user_id = payload.get("userId")
        return str(user_id) if user_id else None


@dataclass(frozen=True)
class AnonymousFallbackIdentity:
    """
    Política de identidad para endpoints con auth opcional.

    enabled=True: sin token o con token inválido se usa `user_id`.
    enabled=False: se rechaza con AuthFailure.
    """

    enabled: bool
    user_id: str
    tokens: TokenIssuer

    def resolve(self, authorization_header: Optional[str]) -> str:
        """userId del header Authorization, o el anónimo según la política."""
        token = get_bearer_token(authorization_header)
        user_id = self.tokens.decode(token) if token else None
        if user_id:
            return user_id

        if not self.enabled:
            raise AuthFailure("Token ausente o inválido")
        if token:
            logger.warning("Token inválido, usando identidad anónima")
        return self.user_id
