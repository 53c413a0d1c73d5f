"""
Presigned multipart upload helper

Implements the S3 file-field upload protocol: the API hands out presigned
part URLs, the file is PUT straight to storage, and a finalize call returns
a signed field value that later requests submit in place of the file.

This is an async port of the django-s3-file-field upload protocol, not the
django-s3-file-field-client package: that client is synchronous and built on
requests, so it would block the event loop. Requests go through the shared
aiohttp APIClient instead.
"""
import logging
import mimetypes
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Union

from multinet.api.client import APIClient
from multinet.models.upload import FieldValue

logger = logging.getLogger(f'{__name__}.S3FileFieldClient')

UploadData = Union[bytes, str, Path, BinaryIO]

S3FF_PATH = 's3-upload'


def read_upload_data(data: UploadData) -> bytes:
    """
    Load upload content into memory.

    Strings are treated as file contents, not paths; pass a Path to upload a
    file from disk.
    """
    if isinstance(data, bytes):
        return data
    if isinstance(data, str):
        return data.encode('utf-8')
    if isinstance(data, Path):
        return data.read_bytes()
    content = data.read()
    if isinstance(content, str):
        return content.encode('utf-8')
    return content


class S3FileFieldClient:
    """
    Client for the S3 file-field upload endpoints.

    Control and finalize calls go through the API (authenticated); part
    uploads go to the presigned storage URLs without credentials.
    """

    def __init__(self, api: APIClient, base_path: str = S3FF_PATH):
        self.api = api
        self.base_path = base_path.strip('/')

    def _path(self, endpoint: str) -> str:
        return f"{self.base_path}/{endpoint}/"

    async def _upload_parts(self, content: bytes, parts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """PUT each slice of content to its presigned URL and collect ETags."""
        completed = []
        offset = 0
        for part in parts:
            size = part['size']
            chunk = content[offset:offset + size]
            offset += size

            etag = await self.api.put_presigned(part['upload_url'], chunk)
            logger.debug(f"Uploaded part {part['part_number']} ({size} bytes)")

            completed.append({
                'part_number': part['part_number'],
                'size': size,
                'etag': etag,
            })
        return completed

    async def upload_file(
        self,
        data: UploadData,
        field_id: str,
        file_name: str,
        content_type: str = ''
    ) -> FieldValue:
        """
        Upload a file and return its signed field value.

        Args:
            data: File contents, a Path, or a binary file object
            field_id: Server-side model field the file is destined for
            file_name: Name recorded for the file
            content_type: MIME type, guessed from file_name when empty

        Returns:
            FieldValue to submit to the endpoint that consumes the file

        Raises:
            APIException: If any step of the protocol fails
        """
        content = read_upload_data(data)
        content_type = content_type or mimetypes.guess_type(file_name)[0] or 'application/octet-stream'

        initialization = await self.api.post(self._path('upload-initialize'), {
            'field_id': field_id,
            'file_name': file_name,
            'file_size': len(content),
            'content_type': content_type,
        })
        logger.debug(f"Initialized upload of {file_name} as {initialization['object_key']} "
                     f"in {len(initialization['parts'])} part(s)")

        parts = await self._upload_parts(content, initialization['parts'])

        completion = await self.api.post(self._path('upload-complete'), {
            'upload_signature': initialization['upload_signature'],
            'upload_id': initialization['upload_id'],
            'parts': parts,
        })
        await self.api.post_raw(completion['complete_url'], completion['body'])

        finalization = await self.api.post(self._path('finalize'), {
            'upload_signature': initialization['upload_signature'],
        })

        logger.debug(f"Finalized upload of {file_name}")
        return FieldValue(value=finalization['field_value'])
