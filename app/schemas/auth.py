# File: app/schemas/auth.py

from pydantic import BaseModel
from app.services.policy import Role

class Actor(BaseModel):
    """Identity handed to every workflow operation, already verified by the auth service."""
    id: str | None = None
    name: str | None = None
    role: Role = Role.user

    @property
    def display_name(self) -> str:
        return self.name or self.id or "匿名"

ANONYMOUS = Actor()
