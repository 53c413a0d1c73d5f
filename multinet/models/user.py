"""
User model
"""
from typing import Optional

from pydantic import Field

from multinet.models.base import MultinetResource


class User(MultinetResource):
    """An authenticated Multinet user."""

    username: str = Field(..., description="Unique username")
    email: Optional[str] = Field(None, description="Email address")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_superuser: bool = False

    @property
    def full_name(self) -> str:
        """First and last name joined, falling back to the username."""
        name = ' '.join(part for part in (self.first_name, self.last_name) if part)
        return name or self.username
