# module formapro.profiles.models
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class UserRole(str, Enum):
    CLIENT = "client"
    ADMIN = "admin"


class Profile(BaseModel):
    """Profil applicatif (table profiles), id = id Supabase Auth."""
    id: str
    name: str = ""
    phone: str = ""
    address: str = ""
    role: UserRole = UserRole.CLIENT
    created_at: Optional[str] = None
    last_login: Optional[str] = None


class ProfileUpdate(BaseModel):
    # Le rôle n'est jamais modifiable par l'utilisateur lui-même
    name: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=40)
    address: Optional[str] = Field(default=None, max_length=500)
