from pydantic import BaseModel, EmailStr, ConfigDict, Field
from datetime import datetime
from typing import Optional

from app.models.user import Role

class UserCreate(BaseModel):
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    role: Role
    contact: EmailStr

class UserResponse(BaseModel):
    user_id: str
    name: str
    role: Role
    contact: str
    has_password: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class LoginRequest(BaseModel):
    # user_id ou contact, le contact est prioritaire
    user_id: Optional[str] = None
    contact: Optional[str] = None
    password: Optional[str] = None

class TokenResponse(BaseModel):
    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    user_id: str
    role: Role
    name: str

class SetPasswordRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)
    # bcrypt ignore au-delà de 72 octets
    new_password: str = Field(..., min_length=1, max_length=72)

class BlockingTask(BaseModel):
    task_id: str
    title: str

    model_config = ConfigDict(from_attributes=True)

class DeleteUserResponse(BaseModel):
    message: str = "User deleted successfully"
    tasks_handled: int
    tasks_reassigned: bool

class MessageResponse(BaseModel):
    message: str
