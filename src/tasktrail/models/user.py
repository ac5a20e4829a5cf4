"""User and actor models."""

from datetime import datetime

from pydantic import BaseModel

from tasktrail.models.enums import Role


class Actor(BaseModel):
    """Authenticated identity as supplied by the auth layer."""

    id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class User(BaseModel):
    """User account without credentials."""

    id: int
    email: str
    role: Role
    created_at: datetime

    def as_actor(self) -> Actor:
        return Actor(id=self.id, role=self.role)
