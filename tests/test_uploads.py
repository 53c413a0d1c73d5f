"""
Tests for presigned uploads and the table/network upload orchestration
"""
import asyncio
import io
from unittest.mock import AsyncMock, patch

import pytest
from aioresponses import aioresponses

from multinet.api.client import APIClient
from multinet.api.uploads import S3FileFieldClient, read_upload_data
from multinet.exceptions import APIException
from multinet.models import FieldValue, Upload
from multinet.utils.logging import ContextualLogger, log_context
from tests.factories import API_URL, STORAGE_URL, PayloadFactory, mock_presigned_upload, sent, url

CSV = b"_key,name,age\n1,Ann,34\n2,Bob,29\n"


class TestReadUploadData:
    """Test loading of the supported upload inputs."""

    def test_bytes(self):
        assert read_upload_data(b"abc") == b"abc"

    def test_str_is_content(self):
        assert read_upload_data("héllo") == "héllo".encode("utf-8")

    def test_path(self, tmp_path):
        path = tmp_path / "people.csv"
        path.write_bytes(CSV)
        assert read_upload_data(path) == CSV

    def test_binary_file_object(self):
        assert read_upload_data(io.BytesIO(CSV)) == CSV

    def test_text_file_object(self):
        assert read_upload_data(io.StringIO("a,b\n")) == b"a,b\n"


class TestS3FileFieldClient:
    """Test the presigned multipart protocol."""

    @pytest.mark.asyncio
    async def test_upload_file_runs_all_phases(self):
        api = APIClient(base_url=API_URL, api_token="secret")
        uploader = S3FileFieldClient(api)

        try:
            with aioresponses() as m:
                mock_presigned_upload(m, field_value="ref-123", part_sizes=[20, len(CSV) - 20])

                result = await uploader.upload_file(CSV, "api.Upload.blob", "people.csv")

                init = sent(m, "POST", url("s3-upload/upload-initialize/"))
                assert init["json"] == {
                    "field_id": "api.Upload.blob",
                    "file_name": "people.csv",
                    "file_size": len(CSV),
                    "content_type": "text/csv",
                }
                assert init["headers"]["Authorization"] == "Bearer secret"

                part1 = sent(m, "PUT", f"{STORAGE_URL}/object?partNumber=1&uploadId=up-1")
                part2 = sent(m, "PUT", f"{STORAGE_URL}/object?partNumber=2&uploadId=up-1")
                assert part1["data"] + part2["data"] == CSV
                assert "Authorization" not in part1["headers"]

                complete = sent(m, "POST", url("s3-upload/upload-complete/"))
                assert complete["json"] == {
                    "upload_signature": "sig-1",
                    "upload_id": "up-1",
                    "parts": [
                        {"part_number": 1, "size": 20, "etag": '"etag-1"'},
                        {"part_number": 2, "size": len(CSV) - 20, "etag": '"etag-2"'},
                    ],
                }

                storage_complete = sent(m, "POST", f"{STORAGE_URL}/object?uploadId=up-1")
                assert storage_complete["data"] == "<CompleteMultipartUpload></CompleteMultipartUpload>"

                finalize = sent(m, "POST", url("s3-upload/finalize/"))
                assert finalize["json"] == {"upload_signature": "sig-1"}
        finally:
            await api.close()

        assert result == FieldValue(value="ref-123")

    @pytest.mark.asyncio
    async def test_initialize_failure_propagates(self):
        api = APIClient(base_url=API_URL)
        uploader = S3FileFieldClient(api)

        try:
            with aioresponses() as m:
                m.post(url("s3-upload/upload-initialize/"), status=400, payload={"field_id": ["Invalid field."]})

                with pytest.raises(APIException) as exc_info:
                    await uploader.upload_file(b"x", "bad.field", "x.csv")
        finally:
            await api.close()

        assert exc_info.value.status == 400


class TestUploadTable:
    """Test the two-step table upload."""

    @pytest.mark.asyncio
    async def test_completion_body_carries_reference_and_column_types(self, client):
        column_types = {"name": "label", "age": "number"}

        with aioresponses() as m:
            mock_presigned_upload(m, field_value="ref-123", part_sizes=[len(CSV)])
            m.post(url("workspaces/boston/uploads/csv/"), status=201, payload=PayloadFactory.upload())

            upload = await client.upload_table(
                "boston", "people", CSV,
                column_types=column_types,
                delimiter=";",
                quote_char="'",
            )

            body = sent(m, "POST", url("workspaces/boston/uploads/csv/"))["json"]

        assert body == {
            "field_value": "ref-123",
            "edge": False,
            "table_name": "people",
            "columns": column_types,
            "delimiter": ";",
            "quotechar": "'",
        }
        assert isinstance(upload, Upload)
        assert upload.id == 21

    @pytest.mark.asyncio
    async def test_json_upload_omits_csv_dialect(self, client):
        with patch.object(client.uploader, "upload_file",
                          AsyncMock(return_value=FieldValue(value="ref-json"))) as upload_file:
            with aioresponses() as m:
                m.post(url("workspaces/boston/uploads/json/"), status=201, payload=PayloadFactory.upload(data_type="JSON"))

                await client.upload_table("boston", "links", b"[]", edge_table=True, file_type="json", delimiter=",")

                body = sent(m, "POST", url("workspaces/boston/uploads/json/"))["json"]

        upload_file.assert_awaited_once_with(b"[]", "api.Upload.blob", "links.json")
        assert body == {"field_value": "ref-json", "edge": True, "table_name": "links", "columns": {}}

    @pytest.mark.asyncio
    async def test_file_name_taken_from_path(self, client, tmp_path):
        path = tmp_path / "members.csv"
        path.write_bytes(CSV)

        with patch.object(client.uploader, "upload_file",
                          AsyncMock(return_value=FieldValue(value="ref"))) as upload_file:
            with aioresponses() as m:
                m.post(url("workspaces/boston/uploads/csv/"), status=201, payload=PayloadFactory.upload())

                await client.upload_table("boston", "people", path)

        assert upload_file.await_args.args[2] == "members.csv"

    @pytest.mark.asyncio
    async def test_helper_failure_skips_completion(self, client):
        with aioresponses() as m:
            m.post(url("s3-upload/upload-initialize/"), status=403, payload={"detail": "Forbidden"})

            with pytest.raises(APIException) as exc_info:
                await client.upload_table("boston", "people", CSV)

            assert ("POST", url("workspaces/boston/uploads/csv/")) not in {
                (method, str(request_url)) for method, request_url in m.requests
            }

        assert exc_info.value.status == 403
        assert "trace_id" not in log_context.get({})

    @pytest.mark.asyncio
    async def test_completion_failure_propagates(self, client):
        with aioresponses() as m:
            mock_presigned_upload(m, part_sizes=[len(CSV)])
            m.post(url("workspaces/boston/uploads/csv/"), status=400, payload={"columns": ["Invalid type."]})

            with pytest.raises(APIException) as exc_info:
                await client.upload_table("boston", "people", CSV, column_types={"age": "bogus"})

        assert exc_info.value.status == 400
        assert exc_info.value.detail == {"columns": ["Invalid type."]}


class TestUploadNetwork:
    """Test the two-step network upload."""

    @pytest.mark.asyncio
    async def test_completion_body(self, client):
        document = b'{"nodes": [{"id": "a"}], "links": []}'
        node_columns = {"id": "primary key"}
        edge_columns = {"source": "edge source", "target": "edge target"}

        with aioresponses() as m:
            mock_presigned_upload(m, field_value="net-ref", part_sizes=[len(document)])
            m.post(url("workspaces/boston/uploads/d3_json/"), status=201, payload=PayloadFactory.upload(data_type="D3_JSON"))

            upload = await client.upload_network("boston", "friends", document, node_columns, edge_columns)

            body = sent(m, "POST", url("workspaces/boston/uploads/d3_json/"))["json"]
            init = sent(m, "POST", url("s3-upload/upload-initialize/"))["json"]

        assert body == {
            "field_value": "net-ref",
            "network_name": "friends",
            "node_columns": node_columns,
            "edge_columns": edge_columns,
        }
        assert init["file_name"] == "friends.json"
        assert init["content_type"] == "application/json"
        assert upload.data_type == "D3_JSON"


class TestConcurrentUploads:
    """Test uploads running at the same time on one client."""

    @pytest.mark.asyncio
    async def test_concurrent_uploads_trace_independently(self, client):
        delays = {
            "people.csv": (0.01, 0.05),
            "links.csv": (0.03, 0.01),
        }

        async def upload_file(data, file_name):
            await asyncio.sleep(delays[file_name][0])
            return f"ref-{file_name}"

        async def post(endpoint, completion):
            await asyncio.sleep(delays[completion["field_value"][4:]][1])
            return PayloadFactory.upload(id=len(completion["table_name"]))

        with patch.object(client, "_upload_file", AsyncMock(side_effect=upload_file)), \
                patch.object(client.api, "post", AsyncMock(side_effect=post)), \
                patch.object(ContextualLogger, "info") as mock_info, \
                patch.object(ContextualLogger, "warning") as mock_warning:
            people, links = await asyncio.gather(
                client.upload_table("boston", "people", CSV),
                client.upload_table("boston", "links", CSV, edge_table=True),
            )

        assert (people.id, links.id) == (6, 5)
        mock_warning.assert_not_called()

        finished = [c for c in mock_info.call_args_list if c.args[0] == "Operation completed"]
        assert len(finished) == 2
        assert len({c.kwargs["trace_id"] for c in finished}) == 2
        assert "trace_id" not in log_context.get({})
