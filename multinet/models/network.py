"""
Network models

A network is a graph built from one edge table and the node tables its edges
reference.
"""
from typing import Literal, Optional, Union

from pydantic import Field

from multinet.models.base import MultinetResource
from multinet.models.table import TableRow
from multinet.models.workspace import Workspace

EdgeDirection = Literal['all', 'incoming', 'outgoing']


class Network(MultinetResource):
    """Network record as returned by the server."""

    name: str = Field(..., description="Network name")
    node_count: int = Field(0, description="Number of nodes")
    edge_count: int = Field(0, description="Number of edges")
    workspace: Optional[Union[Workspace, int]] = Field(None, description="Owning workspace (nested or id)")


class Edge(TableRow):
    """An edge row referencing its source and target node rows by handle."""

    from_: str = Field(..., alias="_from", description="Source node handle")
    to: str = Field(..., alias="_to", description="Target node handle")
