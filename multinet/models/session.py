"""
Session models

A session is saved visualization-application state attached to either a
network or a table.
"""
from typing import Any, Dict, Literal, Optional

from pydantic import Field

from multinet.models.base import MultinetResource

SessionType = Literal['network', 'table']

SESSION_TYPES = ('network', 'table')


class Session(MultinetResource):
    """A saved visualization session."""

    name: str = Field(..., description="Session name")
    workspace: Optional[int] = Field(None, description="Owning workspace id")
    network: Optional[int] = Field(None, description="Network id for network sessions")
    table: Optional[int] = Field(None, description="Table id for table sessions")
    state: Dict[str, Any] = Field(default_factory=dict, description="Opaque application state")

    @property
    def session_type(self) -> Optional[str]:
        """'network' or 'table', depending on which item the session is keyed to."""
        if self.network is not None:
            return 'network'
        if self.table is not None:
            return 'table'
        return None
