"""
Table models

Tables are named row collections inside a workspace; an edge table's rows
connect rows of node tables.
"""
from typing import Any, Dict, Literal, Optional, Union

from pydantic import Field

from multinet.models.base import MultinetBaseModel, MultinetResource
from multinet.models.workspace import Workspace

TableType = Literal['all', 'node', 'edge']

ColumnType = Literal[
    'primary key',
    'edge source',
    'edge target',
    'label',
    'string',
    'boolean',
    'category',
    'number',
    'date',
    'ignored',
]

ColumnTypes = Dict[str, ColumnType]


class Table(MultinetResource):
    """Table record as returned by the server."""

    name: str = Field(..., description="Table name")
    edge: bool = Field(False, description="Whether this is an edge table")
    workspace: Optional[Union[Workspace, int]] = Field(None, description="Owning workspace (nested or id)")


class TableRow(MultinetBaseModel):
    """
    A single document in a table.

    The database's internal fields are exposed without their leading
    underscore; every other column is kept as an extra attribute.
    """

    model_config = {"extra": "allow"}

    key: str = Field(..., alias="_key", description="Primary key within the table")
    id: str = Field(..., alias="_id", description="Document handle, '<table>/<key>'")
    rev: Optional[str] = Field(None, alias="_rev", description="Document revision")

    @property
    def table_name(self) -> str:
        """Name of the table this row belongs to, taken from its handle."""
        return self.id.split('/', 1)[0]

    @property
    def attributes(self) -> Dict[str, Any]:
        """The row's non-internal columns."""
        return dict(self.model_extra or {})
