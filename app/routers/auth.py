import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError

from app.core.config import settings
from app.core.deps import get_user_store
from app.core.errors import (
    ConflictError, AuthError, InternalError, InvalidTokenError, TokenExpiredError, ValidationError
)
from app.core.security import create_access_token, check_secret, hash_secret
from app.models.common import utcnow
from app.models.user import User, Role
from app.schemas.user import LoginRequest, TokenResponse, SetPasswordRequest, MessageResponse
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, users: UserStore = Depends(get_user_store)):
    """Se connecter (user_id ou contact) et recevoir le token"""

    if not credentials.password or not (credentials.user_id or credentials.contact):
        raise ValidationError("Missing credentials")

    # Cherche l'utilisateur par contact en priorité, sinon par id
    if credentials.contact:
        user = users.get_by_contact(credentials.contact)
    else:
        user = users.get(credentials.user_id)

    # Un compte sans mot de passe (setup pas fait) ne peut pas se connecter
    if not user or not user.has_password:
        logger.warning("Login refused: unknown user or password not set")
        raise AuthError("Invalid credentials")

    if not user.verify_password(credentials.password):
        logger.warning(f"Login refused for {user.user_id}: wrong password")
        raise AuthError("Invalid credentials")

    token = create_access_token(user.user_id, user.role, user.name)

    return {
        "message": "Login successful",
        "token": token,
        "token_type": "bearer",
        "user_id": user.user_id,
        "role": user.role,
        "name": user.name,
    }


@router.post("/init-admin", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def init_admin(users: UserStore = Depends(get_user_store)):
    """Crée l'admin par défaut, une seule fois"""

    if users.get(settings.DEFAULT_ADMIN_ID):
        raise ConflictError("Admin creation is disabled after initial setup")

    if not settings.DEFAULT_ADMIN_EMAIL or not settings.DEFAULT_ADMIN_PASSWORD:
        raise InternalError(
            "Failed to initialize admin",
            details="DEFAULT_ADMIN_EMAIL and DEFAULT_ADMIN_PASSWORD must be set",
        )

    if users.get_by_contact(settings.DEFAULT_ADMIN_EMAIL):
        raise ValidationError("Contact already in use")

    admin = User(
        user_id=settings.DEFAULT_ADMIN_ID,
        name="Admin",
        role=Role.ADMIN.value,
        contact=settings.DEFAULT_ADMIN_EMAIL,
    )
    admin.set_password(settings.DEFAULT_ADMIN_PASSWORD)
    try:
        users.put(admin)
    except IntegrityError:
        users.rollback()
        raise ConflictError("Admin creation is disabled after initial setup")

    logger.info(f"Admin {admin.user_id} created")
    return {"message": "Admin user created successfully"}


@router.post("/set-password", response_model=MessageResponse)
def set_password(data: SetPasswordRequest, users: UserStore = Depends(get_user_store)):
    """Définir le mot de passe avec le token reçu par mail"""

    user = users.get(data.user_id)
    if not user or not user.password_setup_token or not user.token_expires_at:
        logger.warning(f"Set password refused for {data.user_id}: no pending setup token")
        raise ValidationError("Invalid or expired token")

    if utcnow() > user.token_expires_at:
        logger.warning(f"Set password refused for {data.user_id}: token expired")
        raise TokenExpiredError("Token has expired")

    if not check_secret(data.token, user.password_setup_token):
        logger.warning(f"Set password refused for {data.user_id}: token mismatch")
        raise InvalidTokenError("Invalid token")

    users.update(data.user_id, {
        "password_hash": hash_secret(data.new_password),
        "password_setup_token": None,
        "token_expires_at": None,
    })

    logger.info(f"Password set for {data.user_id}")
    return {"message": "Password set successfully"}
