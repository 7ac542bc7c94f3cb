"""User store: accès par clé primaire ou par contact (index secondaire)"""

from typing import List, Mapping, Any, Optional

from sqlalchemy.orm import Session

from app.models.common import utcnow
from app.models.user import User

# Champs modifiables par une mise à jour partielle
UPDATABLE_FIELDS = frozenset({
    "name", "role", "contact", "password_hash", "password_setup_token", "token_expires_at",
})



def normalize_contact(contact: str) -> str:
    # même forme que EmailStr: domaine en minuscules, partie locale intacte
    local, sep, domain = contact.strip().rpartition("@")
    if not sep:
        return contact.strip()
    return f"{local}@{domain.lower()}"


class UserStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_contact(self, contact: str) -> Optional[User]:
        return self.db.query(User).filter(User.contact == normalize_contact(contact)).first()

    def scan(self) -> List[User]:
        return self.db.query(User).order_by(User.created_at).all()

    def put(self, user: User) -> User:
        user.contact = normalize_contact(user.contact)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update(self, user_id: str, changes: Mapping[str, Any]) -> Optional[User]:
        """Applique `changes` si l'utilisateur existe; None sinon.

        Une valeur None efface le champ.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {', '.join(sorted(unknown))}")

        user = self.get(user_id)
        if user is None:
            return None

        if changes.get("contact"):
            changes = {**changes, "contact": normalize_contact(changes["contact"])}

        for field, value in changes.items():
            setattr(user, field, value)
        user.updated_at = utcnow()

        self.db.commit()
        self.db.refresh(user)
        return user

    def rollback(self):
        self.db.rollback()

    def delete(self, user_id: str) -> bool:
        user = self.get(user_id)
        if user is None:
            return False
        self.db.delete(user)
        self.db.commit()
        return True
