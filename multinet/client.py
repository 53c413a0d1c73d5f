"""
Multinet API client

One coroutine per server endpoint. Each method checks that its required path
identifiers are present, issues exactly one request (two protocol phases for
uploads) and returns the response as typed models. Server-side failures are
propagated unchanged as APIException.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import quote

from multinet.api.client import APIClient
from multinet.api.uploads import S3FileFieldClient, UploadData
from multinet.exceptions import APIException, InvalidArgumentError
from multinet.models import (
    ColumnTypes,
    Edge,
    EdgeDirection,
    Network,
    Paginated,
    Session,
    SESSION_TYPES,
    SessionType,
    Table,
    TABLE_FILE_TYPES,
    TableFileType,
    TableRow,
    TableType,
    Upload,
    User,
    Workspace,
    WorkspacePermissions,
)
from multinet.utils.logging import get_contextual_logger

logger = logging.getLogger(f'{__name__}.MultinetClient')

UPLOAD_FIELD_ID = 'api.Upload.blob'


def _require(**identifiers: Any) -> None:
    """Raise InvalidArgumentError for the first empty identifier."""
    for name, value in identifiers.items():
        if value is None or value == '':
            raise InvalidArgumentError(f'argument "{name}" must not be empty')


def _require_choice(name: str, value: Optional[str], choices: Sequence[str]) -> None:
    _require(**{name: value})
    if value not in choices:
        raise InvalidArgumentError(
            f'argument "{name}" must be one of {", ".join(choices)} (got {value!r})'
        )


def _segment(value: Any) -> str:
    return quote(str(value), safe='')


class MultinetClient:
    """
    Typed async client for the Multinet REST API.

    Example:
        async with MultinetClient('https://multinet.example.org/api') as api:
            api.set_auth_token(token)
            page = await api.workspaces()
            rows = await api.table('my-workspace', 'people', limit=50)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: Optional[int] = None,
        api: Optional[APIClient] = None
    ):
        """
        Initialize the client.

        Args:
            base_url: API root URL (or MULTINET_API_URL)
            api_token: Bearer token (or MULTINET_API_TOKEN)
            timeout: Total request timeout in seconds
            api: Pre-built transport, mainly for tests
        """
        self.api = api or APIClient(base_url=base_url, api_token=api_token, timeout=timeout)
        self.uploader = S3FileFieldClient(self.api)

    @property
    def base_url(self) -> str:
        return self.api.base_url

    # =========================================================================
    # Credentials
    # =========================================================================

    def set_auth_token(self, token: str) -> None:
        """Attach a bearer token to all subsequent requests from this client."""
        self.api.set_auth_token(token)

    def clear_auth_token(self) -> None:
        """Remove the bearer token; later requests are anonymous."""
        self.api.clear_auth_token()

    # =========================================================================
    # Users
    # =========================================================================

    async def me(self) -> User:
        """Get the authenticated user."""
        data = await self.api.get('users/me')
        return User.from_api_data(data)

    async def search_users(self, username: str) -> List[User]:
        """Search users by (partial) username."""
        data = await self.api.get('users/search', params={'username': username})
        return [User.from_api_data(item) for item in data or []]

    # =========================================================================
    # Workspaces
    # =========================================================================

    async def workspaces(self) -> Paginated[Workspace]:
        """List the workspaces visible to the current user."""
        data = await self.api.get('workspaces/')
        return Paginated[Workspace].model_validate(data)

    async def workspace(self, workspace: str) -> Workspace:
        """Get a single workspace."""
        _require(workspace=workspace)
        data = await self.api.get(f'workspaces/{_segment(workspace)}/')
        return Workspace.from_api_data(data)

    async def create_workspace(self, workspace: str) -> Workspace:
        """Create a workspace and return the server's record of it."""
        _require(workspace=workspace)
        data = await self.api.post('workspaces/', {'name': workspace})
        logger.info(f"Created workspace {workspace}")
        return Workspace.from_api_data(data)

    async def delete_workspace(self, workspace: str) -> Any:
        """Delete a workspace; deleting a missing one fails with a 404 APIException."""
        _require(workspace=workspace)
        result = await self.api.delete(f'workspaces/{_segment(workspace)}/')
        logger.info(f"Deleted workspace {workspace}")
        return result

    async def rename_workspace(self, workspace: str, name: str) -> Workspace:
        """Rename a workspace."""
        _require(workspace=workspace, name=name)
        data = await self.api.put(f'workspaces/{_segment(workspace)}/', {'name': name})
        return Workspace.from_api_data(data)

    async def get_workspace_permissions(self, workspace: str) -> WorkspacePermissions:
        """Get the owner, maintainers, writers, readers and public flag of a workspace."""
        _require(workspace=workspace)
        data = await self.api.get(f'workspaces/{_segment(workspace)}/permissions/')
        return WorkspacePermissions.from_api_data(data)

    async def set_workspace_permissions(
        self,
        workspace: str,
        permissions: Union[WorkspacePermissions, Dict[str, Any]]
    ) -> WorkspacePermissions:
        """Replace the permissions of a workspace."""
        _require(workspace=workspace)
        if isinstance(permissions, WorkspacePermissions):
            payload = permissions.to_dict(exclude_none=False)
        else:
            payload = permissions
        data = await self.api.put(f'workspaces/{_segment(workspace)}/permissions/', payload)
        return WorkspacePermissions.from_api_data(data)

    # =========================================================================
    # Tables
    # =========================================================================

    async def tables(self, workspace: str, type: Optional[TableType] = None) -> Paginated[Table]:
        """
        List the tables of a workspace.

        Args:
            workspace: Workspace name
            type: Optional filter, 'all', 'node' or 'edge'
        """
        _require(workspace=workspace)
        data = await self.api.get(f'workspaces/{_segment(workspace)}/tables/', params={'type': type})
        return Paginated[Table].model_validate(data)

    async def table(
        self,
        workspace: str,
        table: str,
        offset: Optional[int] = None,
        limit: Optional[int] = None
    ) -> Paginated[TableRow]:
        """Get one page of a table's rows."""
        _require(workspace=workspace, table=table)
        data = await self.api.get(
            f'workspaces/{_segment(workspace)}/tables/{_segment(table)}/rows/',
            params={'offset': offset, 'limit': limit}
        )
        return Paginated[TableRow].model_validate(data)

    async def table_column_types(self, workspace: str, table: str) -> ColumnTypes:
        """Get the column-type annotations of a table as a column -> type map."""
        _require(workspace=workspace, table=table)
        data = await self.api.get(f'workspaces/{_segment(workspace)}/tables/{_segment(table)}/annotations/')
        return dict(data or {})

    async def set_table_column_types(self, workspace: str, table: str, column_types: ColumnTypes) -> ColumnTypes:
        """Replace the column-type annotations of a table."""
        _require(workspace=workspace, table=table)
        data = await self.api.put(
            f'workspaces/{_segment(workspace)}/tables/{_segment(table)}/annotations/',
            dict(column_types)
        )
        return dict(data or {})

    async def download_table(self, workspace: str, table: str) -> Any:
        """Download a table's full contents in the server's export format."""
        _require(workspace=workspace, table=table)
        return await self.api.get(f'workspaces/{_segment(workspace)}/tables/{_segment(table)}/download/')

    async def delete_table(self, workspace: str, table: str) -> Any:
        """Delete a table."""
        _require(workspace=workspace, table=table)
        result = await self.api.delete(f'workspaces/{_segment(workspace)}/tables/{_segment(table)}/')
        logger.info(f"Deleted table {workspace}/{table}")
        return result

    async def create_aql_table(self, workspace: str, table: str, query: str) -> Table:
        """Create a table from the results of an AQL query."""
        _require(workspace=workspace, table=table, query=query)
        data = await self.api.post(f'workspaces/{_segment(workspace)}/tables/', {'name': table, 'query': query})
        return Table.from_api_data(data)

    # =========================================================================
    # Networks
    # =========================================================================

    async def networks(self, workspace: str) -> Paginated[Network]:
        """List the networks of a workspace."""
        _require(workspace=workspace)
        data = await self.api.get(f'workspaces/{_segment(workspace)}/networks/')
        return Paginated[Network].model_validate(data)

    async def network(self, workspace: str, network: str) -> Network:
        """Get a single network."""
        _require(workspace=workspace, network=network)
        data = await self.api.get(f'workspaces/{_segment(workspace)}/networks/{_segment(network)}/')
        return Network.from_api_data(data)

    async def network_tables(self, workspace: str, network: str, type: Optional[TableType] = None) -> List[Table]:
        """List the node and/or edge tables a network is built from."""
        _require(workspace=workspace, network=network)
        data = await self.api.get(
            f'workspaces/{_segment(workspace)}/networks/{_segment(network)}/tables/',
            params={'type': type}
        )
        return [Table.from_api_data(item) for item in data or []]

    async def nodes(
        self,
        workspace: str,
        network: str,
        offset: Optional[int] = None,
        limit: Optional[int] = None
    ) -> Paginated[TableRow]:
        """Get one page of a network's nodes."""
        _require(workspace=workspace, network=network)
        data = await self.api.get(
            f'workspaces/{_segment(workspace)}/networks/{_segment(network)}/nodes/',
            params={'offset': offset, 'limit': limit}
        )
        return Paginated[TableRow].model_validate(data)

    async def edges(
        self,
        workspace: str,
        network: str,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        direction: Optional[EdgeDirection] = None
    ) -> Paginated[Edge]:
        """
        Get one page of a network's edges.

        Args:
            direction: Optional 'all', 'incoming' or 'outgoing', passed through
        """
        _require(workspace=workspace, network=network)
        data = await self.api.get(
            f'workspaces/{_segment(workspace)}/networks/{_segment(network)}/edges/',
            params={'offset': offset, 'limit': limit, 'direction': direction}
        )
        return Paginated[Edge].model_validate(data)

    async def create_network(self, workspace: str, network: str, edge_table: str) -> Network:
        """Create a network from an existing edge table."""
        _require(workspace=workspace, network=network, edge_table=edge_table)
        data = await self.api.post(
            f'workspaces/{_segment(workspace)}/networks/',
            {'name': network, 'edge_table': edge_table}
        )
        logger.info(f"Created network {workspace}/{network} from edge table {edge_table}")
        return Network.from_api_data(data)

    async def delete_network(self, workspace: str, network: str) -> Any:
        """Delete a network (its tables are kept)."""
        _require(workspace=workspace, network=network)
        result = await self.api.delete(f'workspaces/{_segment(workspace)}/networks/{_segment(network)}/')
        logger.info(f"Deleted network {workspace}/{network}")
        return result

    async def download_network(self, workspace: str, network: str) -> Any:
        """Download a network's nodes and edges in the server's export format."""
        _require(workspace=workspace, network=network)
        return await self.api.get(f'workspaces/{_segment(workspace)}/networks/{_segment(network)}/download/')

    # =========================================================================
    # Queries
    # =========================================================================

    async def aql(self, workspace: str, query: str, bind_vars: Optional[Dict[str, Any]] = None) -> List[Any]:
        """
        Run a parametrized AQL query in a workspace.

        The query text is sent as-is; all validation happens on the server.

        Returns:
            The result documents
        """
        _require(workspace=workspace)
        data = await self.api.post(
            f'workspaces/{_segment(workspace)}/aql/',
            {'query': query, 'bind_vars': bind_vars or {}}
        )
        return list(data or [])

    # =========================================================================
    # Uploads
    # =========================================================================

    async def uploads(self, workspace: str) -> Paginated[Upload]:
        """List the ingestion jobs of a workspace."""
        _require(workspace=workspace)
        data = await self.api.get(f'workspaces/{_segment(workspace)}/uploads/')
        return Paginated[Upload].model_validate(data)

    async def upload(self, workspace: str, upload_id: int) -> Upload:
        """Get one ingestion job, e.g. to poll its status."""
        _require(workspace=workspace, upload_id=upload_id)
        data = await self.api.get(f'workspaces/{_segment(workspace)}/uploads/{_segment(upload_id)}/')
        return Upload.from_api_data(data)

    async def _upload_file(self, data: UploadData, file_name: str) -> str:
        field_value = await self.uploader.upload_file(data, UPLOAD_FIELD_ID, file_name)
        return field_value.value

    async def _traced_upload(self, operation: str, data: UploadData, file_name: str, endpoint: str,
                             completion: Dict[str, Any]) -> Upload:
        """Run both upload phases under one trace id; failures propagate unchanged."""
        upload_logger = get_contextual_logger(f'{__name__}.uploads')
        trace_id = upload_logger.start_operation(operation)
        try:
            completion['field_value'] = await self._upload_file(data, file_name)
            upload_logger.debug(f"Stored {file_name}, submitting to {endpoint}")
            result = await self.api.post(endpoint, completion)
        except Exception as e:
            status = e.status if isinstance(e, APIException) else None
            upload_logger.error(f"{operation} failed for {file_name}", error=e, status=status)
            upload_logger.end_operation(trace_id, 'failed')
            raise
        upload_logger.end_operation(trace_id, 'completed')
        return Upload.from_api_data(result)

    async def upload_table(
        self,
        workspace: str,
        table: str,
        data: UploadData,
        edge_table: bool = False,
        column_types: Optional[ColumnTypes] = None,
        file_type: TableFileType = 'csv',
        delimiter: Optional[str] = None,
        quote_char: Optional[str] = None,
        file_name: Optional[str] = None
    ) -> Upload:
        """
        Upload a file as a new table.

        Stores the file through the presigned-upload helper, then submits the
        storage reference with the column types and CSV dialect to the
        ingestion endpoint.

        Args:
            workspace: Target workspace
            table: Name of the table to create
            data: File contents, a Path, or a binary file object
            edge_table: Whether the table holds edges
            column_types: Column name -> ColumnType map, sent as given
            file_type: 'csv' or 'json'
            delimiter: CSV field delimiter
            quote_char: CSV quote character
            file_name: Name recorded for the file (defaults from the Path or table)

        Returns:
            The created ingestion job
        """
        _require(workspace=workspace, table=table)
        _require_choice('file_type', file_type, TABLE_FILE_TYPES)

        completion: Dict[str, Any] = {
            'edge': edge_table,
            'table_name': table,
            'columns': dict(column_types or {}),
        }
        if file_type == 'csv':
            if delimiter is not None:
                completion['delimiter'] = delimiter
            if quote_char is not None:
                completion['quotechar'] = quote_char

        if file_name is None:
            file_name = data.name if isinstance(data, Path) else f'{table}.{file_type}'

        return await self._traced_upload(
            'upload_table',
            data,
            file_name,
            f'workspaces/{_segment(workspace)}/uploads/{file_type}/',
            completion
        )

    async def upload_network(
        self,
        workspace: str,
        network: str,
        data: UploadData,
        node_columns: Optional[ColumnTypes] = None,
        edge_columns: Optional[ColumnTypes] = None,
        file_name: Optional[str] = None
    ) -> Upload:
        """
        Upload a D3-style JSON file ({nodes, links}) as a new network.

        Returns:
            The created ingestion job
        """
        _require(workspace=workspace, network=network)

        completion: Dict[str, Any] = {
            'network_name': network,
            'node_columns': dict(node_columns or {}),
            'edge_columns': dict(edge_columns or {}),
        }

        if file_name is None:
            file_name = data.name if isinstance(data, Path) else f'{network}.json'

        return await self._traced_upload(
            'upload_network',
            data,
            file_name,
            f'workspaces/{_segment(workspace)}/uploads/d3_json/',
            completion
        )

    # =========================================================================
    # Sessions
    # =========================================================================

    def _sessions_path(self, workspace: str, type: SessionType, session_id: Optional[int] = None) -> str:
        _require(workspace=workspace)
        _require_choice('type', type, SESSION_TYPES)
        path = f'workspaces/{_segment(workspace)}/sessions/{type}/'
        if session_id is not None:
            path += f'{_segment(session_id)}/'
        return path

    async def list_sessions(self, workspace: str, type: SessionType) -> Paginated[Session]:
        """List the network or table sessions of a workspace."""
        data = await self.api.get(self._sessions_path(workspace, type))
        return Paginated[Session].model_validate(data)

    async def create_session(self, workspace: str, type: SessionType, item_id: int, name: str) -> Session:
        """
        Create an empty session attached to a network or table.

        Args:
            type: 'network' or 'table'
            item_id: Id of the network or table the session belongs to
            name: Session name
        """
        path = self._sessions_path(workspace, type)
        _require(item_id=item_id, name=name)
        data = await self.api.post(path, {'name': name, type: item_id, 'state': {}})
        return Session.from_api_data(data)

    async def get_session(self, workspace: str, type: SessionType, session_id: int) -> Session:
        """Get one session, including its state."""
        _require(session_id=session_id)
        data = await self.api.get(self._sessions_path(workspace, type, session_id))
        return Session.from_api_data(data)

    async def update_session(self, workspace: str, type: SessionType, session_id: int, state: Dict[str, Any]) -> Session:
        """Replace a session's application state."""
        _require(session_id=session_id)
        data = await self.api.patch(self._sessions_path(workspace, type, session_id) + 'state/', {'state': state})
        return Session.from_api_data(data)

    async def rename_session(self, workspace: str, type: SessionType, session_id: int, name: str) -> Session:
        """Rename a session."""
        _require(session_id=session_id, name=name)
        data = await self.api.patch(self._sessions_path(workspace, type, session_id) + 'name/', {'name': name})
        return Session.from_api_data(data)

    async def delete_session(self, workspace: str, type: SessionType, session_id: int) -> Any:
        """Delete a session."""
        _require(session_id=session_id)
        return await self.api.delete(self._sessions_path(workspace, type, session_id))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.api.close()

    async def __aenter__(self):
        await self.api.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def multinet_api(base_url: str, api_token: Optional[str] = None) -> MultinetClient:
    """Create a client for the Multinet API rooted at base_url."""
    return MultinetClient(base_url=base_url, api_token=api_token)
