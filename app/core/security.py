import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from app.core.config import settings
from app.core.errors import AuthError


@dataclass(frozen=True)
class Claims:
    """Identité vérifiée extraite du token, une fois par requête"""
    user_id: str
    role: str
    name: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def hash_secret(value: str) -> str:
    return bcrypt.hashpw(value.encode(), bcrypt.gensalt()).decode()


def check_secret(value: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    return bcrypt.checkpw(value.encode(), hashed.encode())


def generate_setup_token() -> str:
    return secrets.token_hex(32)


def create_access_token(user_id: str, role: str, name: str) -> str:
    #crée un token de session JWT (24h par défaut)
    payload = {
        "user_id": user_id,
        "role": role,
        "name": name,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRE_MIN),
        "type": "access"
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token


def verify_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        return None


def decode_claims(token: str) -> Claims:
    payload = verify_token(token)
    if payload is None or payload.get("type") != "access":
        raise AuthError("Invalid or expired token")

    user_id = payload.get("user_id")
    role = payload.get("role")
    if not user_id or role not in ("admin", "user"):
        raise AuthError("Invalid or expired token")

    return Claims(user_id=user_id, role=role, name=payload.get("name", ""))
