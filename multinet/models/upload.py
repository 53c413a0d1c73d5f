"""
Upload models

Uploads are server-side ingestion jobs created after a file has been pushed
to storage through the presigned-upload protocol.
"""
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import Field

from multinet.models.base import MultinetBaseModel, MultinetResource
from multinet.models.workspace import Workspace

TableFileType = Literal['csv', 'json']

TABLE_FILE_TYPES = ('csv', 'json')


class UploadStatus(Enum):
    """Ingestion job states."""
    PENDING = "PENDING"
    STARTED = "STARTED"
    FAILED = "FAILED"
    FINISHED = "FINISHED"


class Upload(MultinetResource):
    """A server-side ingestion job."""

    workspace: Optional[Union[Workspace, int]] = None
    blob: Optional[str] = Field(None, description="Storage location of the uploaded file")
    user: Optional[Union[str, int]] = Field(None, description="Uploading user")
    data_type: Optional[str] = Field(None, description="Kind of data being ingested")
    error_messages: Optional[List[str]] = None
    status: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """Check if the job has stopped running."""
        return self.status in (UploadStatus.FINISHED.value, UploadStatus.FAILED.value)

    @property
    def failed(self) -> bool:
        """Check if the job ended in failure."""
        return self.status == UploadStatus.FAILED.value


class FieldValue(MultinetBaseModel):
    """Signed storage reference returned by the upload helper's finalize step."""

    value: str = Field(..., description="Opaque field value to submit with the upload")
