"""
Registro y login de usuarios.
"""

import binascii
import hashlib
import hmac
import os
from typing import Optional

import structlog
from pydantic import ValidationError

from vitrina.config import Settings
from vitrina.database import UserRepository
from vitrina.errors import AuthFailure, InvalidInput, UpstreamError
from vitrina.models import User, public_user
from vitrina.services.deadline import run_blocking
from vitrina.services.identity import TokenIssuer

logger = structlog.get_logger()

# Formato: "pbkdf2_sha256$<iterations>$<salt_hex>$<hash_hex>"
_PBKDF2_ALGO_PREFIX = "pbkdf2_sha256"
_PBKDF2_ITERATIONS = 100_000
_PBKDF2_SALT_BYTES = 16


def hash_password(password: str) -> str:
    """Hash PBKDF2-SHA256 con salt aleatorio."""
    salt = os.urandom(_PBKDF2_SALT_BYTES)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PBKDF2_ITERATIONS)
    salt_hex = binascii.hexlify(salt).decode("ascii")
    hash_hex = binascii.hexlify(dk).decode("ascii")
    return f"{_PBKDF2_ALGO_PREFIX}${_PBKDF2_ITERATIONS}${salt_hex}${hash_hex}"


def verify_password(password: str, encoded: Optional[str]) -> bool:
    """Verifica una contraseña; un hash malformado nunca valida."""
    if not encoded:
        return False
    try:
        prefix, iter_str, salt_hex, hash_hex = encoded.split("$", 3)
        if prefix != _PBKDF2_ALGO_PREFIX:
            return False
        iterations = int(iter_str)
        salt = binascii.unhexlify(salt_hex.encode("ascii"))
        expected = binascii.unhexlify(hash_hex.encode("ascii"))
    except (ValueError, binascii.Error):
        return False

    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(dk, expected)


def _normalize_email(email: Optional[str]) -> str:
    return email.strip().lower() if isinstance(email, str) else ""


class AccountService:
    """Alta de usuarios y emisión de tokens."""

    def __init__(self, settings: Settings, users: UserRepository, tokens: TokenIssuer):
        self._settings = settings
        self._users = users
        self._tokens = tokens

    async def register(
        self,
        email: Optional[str],
        password: Optional[str],
        name: Optional[str] = None,
        phone: Optional[str] = None,
        location: Optional[str] = None,
    ) -> tuple[str, dict]:
        """
        Crea un usuario y devuelve (token, usuario público).
        """
        email = _normalize_email(email)
        if not email or not isinstance(password, str) or not password:
            raise InvalidInput("email y password son requeridos")

        try:
            user = User(
                email=email,
                password_hash=hash_password(password),
                name=name,
                phone=phone,
                location=location,
            )
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise InvalidInput("Datos de usuario inválidos", {"fields": fields}) from e

        row = await run_blocking(
            self._users.create,
            user,
            seconds=self._settings.database_timeout_seconds,
            operation="users.insert",
        )
        if not row:
            raise UpstreamError("users.insert: no se devolvió la fila creada")

        logger.info("Usuario registrado", user_id=row["id"])
        return self._tokens.issue(row["id"]), public_user(row)

    async def login(self, email: Optional[str], password: Optional[str]) -> tuple[str, dict]:
        """
        Valida credenciales y devuelve (token, usuario público).

        Raises:
            AuthFailure: email desconocido o contraseña incorrecta
        """
        email = _normalize_email(email)
        if not email or not isinstance(password, str) or not password:
            raise InvalidInput("email y password son requeridos")

        row = await run_blocking(
            self._users.get_by_email,
            email,
            seconds=self._settings.database_timeout_seconds,
            operation="users.get",
        )
        if not row or not verify_password(password, row.get("password_hash")):
            logger.info("Login fallido", email=email)
            raise AuthFailure("Credenciales inválidas")

        logger.info("Login ok", user_id=row["id"])
        return self._tokens.issue(row["id"]), public_user(row)
