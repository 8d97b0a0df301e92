"""Tests for S3 storage client."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from wagon.infra.storage.client import (
    Credentials,
    ObjectNotFoundError,
    StorageError,
)
from wagon.infra.storage.s3_client import SINGLE_THREAD_TRANSFER, S3StorageClient


def _client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, operation)


class TestS3StorageClient:
    """Test S3StorageClient implementation."""

    @pytest.fixture
    def mock_s3(self):
        """Mock boto3 S3 client."""
        mock_client = MagicMock()
        with patch.object(S3StorageClient, "_build_client", return_value=mock_client):
            yield mock_client

    @pytest.fixture
    def client(self, mock_s3):
        """Create S3StorageClient with mocked boto3."""
        return S3StorageClient(region="us-east-1")

    def test_download_file(self, client, mock_s3):
        """Test downloading to a local path."""
        progress = MagicMock()

        client.download_file(
            bucket="test-bucket",
            object_key="repo/a.jar",
            destination=Path("/tmp/a.jar.tmp"),
            progress=progress,
        )

        mock_s3.download_file.assert_called_once_with(
            "test-bucket",
            "repo/a.jar",
            "/tmp/a.jar.tmp",
            Callback=progress,
            Config=SINGLE_THREAD_TRANSFER,
        )

    @pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
    def test_download_missing_key(self, client, mock_s3, code):
        """Test that a missing key is reported as ObjectNotFoundError."""
        mock_s3.download_file.side_effect = _client_error(code)

        with pytest.raises(ObjectNotFoundError, match="repo/a.jar"):
            client.download_file(
                bucket="test-bucket",
                object_key="repo/a.jar",
                destination=Path("/tmp/a.jar.tmp"),
            )

    def test_download_access_denied(self, client, mock_s3):
        """Test that other client errors are not treated as missing keys."""
        mock_s3.download_file.side_effect = _client_error("403")

        with pytest.raises(StorageError, match="Failed to download object") as excinfo:
            client.download_file(
                bucket="test-bucket",
                object_key="repo/a.jar",
                destination=Path("/tmp/a.jar.tmp"),
            )
        assert not isinstance(excinfo.value, ObjectNotFoundError)

    def test_download_exception(self, client, mock_s3):
        """Test error handling when download fails for non-client reasons."""
        mock_s3.download_file.side_effect = OSError("disk full")

        with pytest.raises(StorageError, match="disk full"):
            client.download_file(
                bucket="test-bucket",
                object_key="repo/a.jar",
                destination=Path("/tmp/a.jar.tmp"),
            )

    def test_upload_file(self, client, mock_s3):
        """Test uploading a local file."""
        client.upload_file(
            source=Path("/tmp/a.jar"), bucket="test-bucket", object_key="repo/a.jar"
        )

        mock_s3.upload_file.assert_called_once_with(
            "/tmp/a.jar",
            "test-bucket",
            "repo/a.jar",
            Callback=None,
            Config=SINGLE_THREAD_TRANSFER,
        )

    def test_upload_exception(self, client, mock_s3):
        """Test error handling when upload_file fails."""
        mock_s3.upload_file.side_effect = Exception("S3 error")

        with pytest.raises(StorageError, match="Failed to upload object"):
            client.upload_file(
                source=Path("/tmp/a.jar"), bucket="test-bucket", object_key="k"
            )

    def test_list_objects_first_page(self, client, mock_s3):
        """Test listing without continuation token."""
        mock_s3.list_objects_v2.return_value = {
            "Contents": [
                {"Key": "repo/a.jar", "Size": 10, "ETag": '"e1"'},
                {"Key": "repo/b.jar", "Size": 20, "ETag": '"e2"'},
            ],
            "IsTruncated": True,
            "NextContinuationToken": "token-1",
        }

        listing = client.list_objects(bucket="test-bucket", max_keys=2)

        assert [o.key for o in listing.objects] == ["repo/a.jar", "repo/b.jar"]
        assert listing.objects[1].size_bytes == 20
        assert listing.objects[0].etag == '"e1"'
        assert listing.next_continuation_token == "token-1"
        mock_s3.list_objects_v2.assert_called_once_with(
            Bucket="test-bucket", MaxKeys=2
        )

    def test_list_objects_with_token(self, client, mock_s3):
        """Test that the continuation token is passed on."""
        mock_s3.list_objects_v2.return_value = {"KeyCount": 0, "IsTruncated": False}

        listing = client.list_objects(
            bucket="test-bucket", max_keys=5, continuation_token="token-1"
        )

        assert listing.objects == ()
        assert listing.next_continuation_token is None
        mock_s3.list_objects_v2.assert_called_once_with(
            Bucket="test-bucket", MaxKeys=5, ContinuationToken="token-1"
        )

    def test_list_objects_exception(self, client, mock_s3):
        """Test error handling when list_objects_v2 fails."""
        mock_s3.list_objects_v2.side_effect = Exception("S3 error")

        with pytest.raises(StorageError, match="Failed to list objects"):
            client.list_objects(bucket="test-bucket", max_keys=1)

    def test_close_is_idempotent(self, client, mock_s3):
        """Test closing twice only closes the boto3 client once."""
        client.close()
        client.close()

        mock_s3.close.assert_called_once_with()

    def test_close_exception(self, client, mock_s3):
        """Test error handling when close fails."""
        mock_s3.close.side_effect = Exception("S3 error")

        with pytest.raises(StorageError, match="Failed to close S3 client"):
            client.close()


class TestBuildClient:
    """Test how the boto3 client is assembled."""

    @pytest.fixture
    def mock_session_cls(self):
        with patch("boto3.session.Session") as session_cls:
            yield session_cls

    def test_static_credentials(self, mock_session_cls):
        S3StorageClient(
            credentials=Credentials(
                access_key="AKIA", secret_key="secret", session_token="tok"
            ),
            region="eu-west-1",
        )

        mock_session_cls.assert_called_once_with(
            aws_access_key_id="AKIA",
            aws_secret_access_key="secret",
            aws_session_token="tok",
        )
        call = mock_session_cls.return_value.client.call_args
        assert call.args == ("s3",)
        assert call.kwargs["region_name"] == "eu-west-1"

    def test_ambient_credentials(self, mock_session_cls):
        S3StorageClient()

        mock_session_cls.assert_called_once_with()

    def test_config_forwarding(self, mock_session_cls):
        S3StorageClient(
            endpoint_url="http://localhost:9000",
            addressing_style="path",
            connect_timeout_ms=5000,
            read_timeout_ms=30000,
            proxies={"https": "http://proxy:3128"},
        )

        call = mock_session_cls.return_value.client.call_args
        config = call.kwargs["config"]
        assert call.kwargs["endpoint_url"] == "http://localhost:9000"
        assert config.connect_timeout == 5
        assert config.read_timeout == 30
        assert config.proxies == {"https": "http://proxy:3128"}
        assert config.s3 == {"addressing_style": "path"}

    def test_construction_failure(self, mock_session_cls):
        mock_session_cls.return_value.client.side_effect = ValueError("bad region")

        with pytest.raises(StorageError, match="Failed to create S3 client"):
            S3StorageClient(region="not a region")
