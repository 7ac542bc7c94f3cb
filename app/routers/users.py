"""
Router utilisateurs (admin uniquement): création avec lien de setup, liste, suppression
"""

import logging
from datetime import timedelta
from typing import List, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError

from app.core.auth import require_admin
from app.core.config import settings
from app.core.deps import get_notifier, get_task_store, get_user_store
from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.core.security import Claims, generate_setup_token, hash_secret
from app.models.common import utcnow
from app.models.user import User
from app.schemas.user import UserCreate, UserResponse, DeleteUserResponse, MessageResponse, BlockingTask
from app.services.notifier import Notifier, setup_password_message
from app.services.task_store import TaskStore
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def build_setup_link(token: str, user_id: str) -> str:
    query = urlencode({"token": token, "userId": user_id})
    return f"{settings.APP_URL.rstrip('/')}/setup-password?{query}"


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    users: UserStore = Depends(get_user_store),
    notifier: Notifier = Depends(get_notifier),
    claims: Claims = Depends(require_admin)
):
    """Créer un utilisateur sans mot de passe et lui envoyer le lien de setup"""

    if users.get(user_data.user_id):
        raise ValidationError(f"User with ID {user_data.user_id} already exists")

    if users.get_by_contact(user_data.contact):
        raise ValidationError("Contact already in use")

    # Seul le hash du token est stocké
    token = generate_setup_token()
    new_user = User(
        user_id=user_data.user_id,
        name=user_data.name,
        role=user_data.role.value,
        contact=user_data.contact,
        password_hash=None,
        password_setup_token=hash_secret(token),
        token_expires_at=utcnow() + timedelta(hours=settings.SETUP_TOKEN_EXPIRE_HOURS),
    )
    try:
        users.put(new_user)
    except IntegrityError:
        # création concurrente avec le même id ou contact
        users.rollback()
        raise ValidationError("User ID or contact already in use")
    logger.info(f"User {new_user.user_id} created by {claims.user_id}")

    subject, text = setup_password_message(
        new_user.name, build_setup_link(token, new_user.user_id), settings.SETUP_TOKEN_EXPIRE_HOURS
    )
    notifier.send(new_user.contact, subject, text)

    return {"message": "User created successfully"}


@router.get("", response_model=List[UserResponse])
def list_users(
    users: UserStore = Depends(get_user_store),
    claims: Claims = Depends(require_admin)
):
    return users.scan()


@router.delete("/{user_id}", response_model=DeleteUserResponse)
def delete_user(
    user_id: str,
    force: bool = Query(False),
    reassign_to: Optional[str] = Query(None),
    users: UserStore = Depends(get_user_store),
    tasks: TaskStore = Depends(get_task_store),
    claims: Claims = Depends(require_admin)
):
    """Supprimer un utilisateur; ses tâches doivent être réassignées ou désassignées (force)"""

    if user_id == settings.DEFAULT_ADMIN_ID:
        raise ForbiddenError("Cannot delete the admin user")

    if user_id == claims.user_id:
        raise ForbiddenError("Cannot delete your own account")

    if not users.get(user_id):
        raise NotFoundError("User not found")

    assigned = tasks.query_by_assignee(user_id)

    if assigned and not force:
        logger.info(f"User {user_id} has {len(assigned)} assigned tasks, delete refused")
        raise ValidationError(
            "Cannot delete user with assigned tasks",
            count=len(assigned),
            tasks=[BlockingTask.model_validate(t).model_dump() for t in assigned],
        )

    if assigned and reassign_to:
        if reassign_to == user_id:
            raise ValidationError("Cannot reassign tasks to the user being deleted")
        if not users.get(reassign_to):
            raise NotFoundError(f"Reassign user {reassign_to} not found")

    task_ids = [t.task_id for t in assigned]
    for task_id in task_ids:
        # reassign_to=None retire l'assignation
        tasks.update(task_id, {"assigned_to": reassign_to or None, "notification_sent": None})

    if task_ids:
        action = f"reassigned to {reassign_to}" if reassign_to else "unassigned"
        logger.info(f"{len(task_ids)} tasks of {user_id} {action}")

    users.delete(user_id)
    logger.info(f"User {user_id} deleted by {claims.user_id}")

    return {
        "message": "User deleted successfully",
        "tasks_handled": len(task_ids),
        "tasks_reassigned": bool(task_ids and reassign_to),
    }
