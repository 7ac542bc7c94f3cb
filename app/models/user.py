import enum

from sqlalchemy import Column, String, DateTime

from app.core.database import Base
from app.core.security import check_secret, hash_secret
from app.models.common import utcnow


class Role(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class User(Base):
    __tablename__ = "users"

    user_id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=Role.USER.value)
    contact = Column(String, unique=True, nullable=False, index=True)

    # Vide tant que le mot de passe n'a pas été défini via le lien de setup
    password_hash = Column(String, nullable=True)
    password_setup_token = Column(String, nullable=True)
    token_expires_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def set_password(self, password: str):
        self.password_hash = hash_secret(password)

    def verify_password(self, password: str) -> bool:
        return check_secret(password, self.password_hash)
