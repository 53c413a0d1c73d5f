"""
Workspace models

A workspace is the top-level namespace holding tables and networks.
"""
from typing import List, Optional

from pydantic import Field

from multinet.models.base import MultinetBaseModel, MultinetResource
from multinet.models.user import User


class Workspace(MultinetResource):
    """Workspace record as returned by the server."""

    name: str = Field(..., description="Workspace name")
    arango_db_name: Optional[str] = Field(None, description="Backing database identifier")
    public: bool = Field(False, description="Whether the workspace is world-readable")
    starred: bool = Field(False, description="Whether the current user starred it")


class WorkspacePermissions(MultinetBaseModel):
    """Access roles on a workspace."""

    public: bool = False
    owner: Optional[User] = None
    maintainers: List[User] = Field(default_factory=list)
    writers: List[User] = Field(default_factory=list)
    readers: List[User] = Field(default_factory=list)

    def usernames(self) -> List[str]:
        """All usernames holding any role, owner first."""
        users = ([self.owner] if self.owner else []) + self.maintainers + self.writers + self.readers
        return [user.username for user in users]
