"""
Data models for the Multinet client

Pydantic models mirroring the server's JSON records.
"""

from multinet.models.base import MultinetBaseModel, MultinetResource
from multinet.models.pagination import Paginated
from multinet.models.user import User
from multinet.models.workspace import Workspace, WorkspacePermissions
from multinet.models.table import Table, TableRow, TableType, ColumnType, ColumnTypes
from multinet.models.network import Network, Edge, EdgeDirection
from multinet.models.session import Session, SessionType, SESSION_TYPES
from multinet.models.upload import Upload, UploadStatus, FieldValue, TableFileType, TABLE_FILE_TYPES

__all__ = [
    'MultinetBaseModel',
    'MultinetResource',
    'Paginated',
    'User',
    'Workspace',
    'WorkspacePermissions',
    'Table',
    'TableRow',
    'TableType',
    'ColumnType',
    'ColumnTypes',
    'Network',
    'Edge',
    'EdgeDirection',
    'Session',
    'SessionType',
    'SESSION_TYPES',
    'Upload',
    'UploadStatus',
    'FieldValue',
    'TableFileType',
    'TABLE_FILE_TYPES',
]
