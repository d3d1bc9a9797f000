"""
Modelo de Usuario

Compradores y vendedores comparten la misma tabla 'users'.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """Usuario registrado con su hash de contraseña."""

    model_config = ConfigDict(from_attributes=True)

    # Identificadores
    id: Optional[str] = Field(None, description="UUID generado por Supabase")
    email: str = Field(..., description="Email único de login")
    password_hash: str = Field(..., description="Hash pbkdf2_sha256$...")

    # Perfil
    name: Optional[str] = Field(None, description="Nombre visible")
    phone: Optional[str] = Field(None, description="Teléfono de contacto")
    location: Optional[str] = Field(None, description="Ubicación en texto")

    # Metadatos
    created_at: str = Field(
        default_factory=lambda: datetime.utcnow().isoformat(),
        description="Fecha de registro",
    )

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        return self.model_dump(exclude={"id"})


def public_user(row: dict) -> dict:
    """Subconjunto del usuario que se devuelve al cliente."""
    return {"id": row.get("id"), "email": row.get("email"), "name": row.get("name")}
