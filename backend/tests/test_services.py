"""
Tests for the authorization service and the R2 client.
"""
import pytest
from unittest.mock import MagicMock
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from image_uploader.errors import AuthorizationBackendError, DeletionBackendError, ValidationError
from image_uploader.storage.authorization import AuthorizationService
from image_uploader.storage.r2_client import R2Client


def client_error(code: str, operation: str = "DeleteObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestIssueUploadAuthorization:
    """Tests for AuthorizationService.issue_upload_authorization."""

    def test_returns_url_and_key(self, authorization_service: AuthorizationService, s3_stub: MagicMock):
        """Test the presigned URL comes back with a key derived from the filename."""
        result = authorization_service.issue_upload_authorization("photo.png", "image/png", 2 * 1024 * 1024)

        assert result.authorized_upload_url == s3_stub.generate_presigned_url.return_value
        assert result.storage_key.endswith("-photo.png")
        assert result.expires_in == 3600

    def test_url_bound_to_bucket_key_type_and_length(
        self,
        authorization_service: AuthorizationService,
        s3_stub: MagicMock
    ):
        """Test the signing request carries every binding and a one-hour window."""
        result = authorization_service.issue_upload_authorization("photo.png", "image/png", 2048)

        s3_stub.generate_presigned_url.assert_called_once_with(
            ClientMethod='put_object',
            Params={
                'Bucket': 'test-bucket',
                'Key': result.storage_key,
                'ContentType': 'image/png',
                'ContentLength': 2048,
            },
            ExpiresIn=3600
        )

    def test_each_call_gets_a_new_key(self, authorization_service: AuthorizationService):
        """Test repeated requests for one filename never share a key."""
        keys = {
            authorization_service.issue_upload_authorization("photo.png", "image/png", 1).storage_key
            for _ in range(50)
        }
        assert len(keys) == 50

    def test_zero_size_is_allowed(self, authorization_service: AuthorizationService):
        result = authorization_service.issue_upload_authorization("empty.png", "image/png", 0)
        assert result.storage_key.endswith("-empty.png")

    @pytest.mark.parametrize("filename,content_type,size", [
        ("", "image/png", 10),
        ("   ", "image/png", 10),
        (None, "image/png", 10),
        ("photo.png", "", 10),
        ("photo.png", 42, 10),
        ("photo.png", "image/png", -1),
        ("photo.png", "image/png", "10"),
        ("photo.png", "image/png", True),
        ("photo.png", "image/png", None),
        ("photo.png", "image/png", 1.5),
        ("photo.png", "image/png", float("inf")),
        ("photo.png", "image/png", float("nan")),
    ])
    def test_invalid_shape_raises_validation_error(
        self,
        authorization_service: AuthorizationService,
        s3_stub: MagicMock,
        filename,
        content_type,
        size
    ):
        """Test malformed requests are rejected before touching storage."""
        with pytest.raises(ValidationError):
            authorization_service.issue_upload_authorization(filename, content_type, size)
        s3_stub.generate_presigned_url.assert_not_called()

    def test_backend_failure_raises_authorization_backend_error(
        self,
        authorization_service: AuthorizationService,
        s3_stub: MagicMock
    ):
        """Test signing failures surface as server faults."""
        s3_stub.generate_presigned_url.side_effect = NoCredentialsError()

        with pytest.raises(AuthorizationBackendError) as exc_info:
            authorization_service.issue_upload_authorization("photo.png", "image/png", 10)

        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value.cause, NoCredentialsError)


class TestIssueDeleteCommand:
    """Tests for AuthorizationService.issue_delete_command."""

    def test_deletes_object(self, authorization_service: AuthorizationService, s3_stub: MagicMock):
        authorization_service.issue_delete_command("abc-photo.png")
        s3_stub.delete_object.assert_called_once_with(Bucket="test-bucket", Key="abc-photo.png")

    @pytest.mark.parametrize("code", ["NoSuchKey", "404", "NotFound"])
    def test_missing_object_is_success(
        self,
        authorization_service: AuthorizationService,
        s3_stub: MagicMock,
        code: str
    ):
        """Test deleting an absent key succeeds: the object is gone either way."""
        s3_stub.delete_object.side_effect = client_error(code)
        authorization_service.issue_delete_command("gone-photo.png")

    def test_access_denied_raises_deletion_backend_error(
        self,
        authorization_service: AuthorizationService,
        s3_stub: MagicMock
    ):
        s3_stub.delete_object.side_effect = client_error("AccessDenied")

        with pytest.raises(DeletionBackendError):
            authorization_service.issue_delete_command("abc-photo.png")

    def test_unreachable_backend_raises_deletion_backend_error(
        self,
        authorization_service: AuthorizationService,
        s3_stub: MagicMock
    ):
        s3_stub.delete_object.side_effect = EndpointConnectionError(endpoint_url="https://r2.test")

        with pytest.raises(DeletionBackendError):
            authorization_service.issue_delete_command("abc-photo.png")

    @pytest.mark.parametrize("key", ["", None, 123, ["a"]])
    def test_invalid_key_raises_validation_error(
        self,
        authorization_service: AuthorizationService,
        s3_stub: MagicMock,
        key
    ):
        with pytest.raises(ValidationError):
            authorization_service.issue_delete_command(key)
        s3_stub.delete_object.assert_not_called()


class TestR2Client:
    """Tests for R2Client."""

    def test_delete_reports_whether_object_existed(self, r2_client: R2Client, s3_stub: MagicMock):
        assert r2_client.delete_object("abc") is True

        s3_stub.delete_object.side_effect = client_error("NoSuchKey")
        assert r2_client.delete_object("abc") is False

    def test_builds_boto3_client_from_settings(self, settings):
        """Test a real boto3 client is created without network access."""
        client = R2Client(settings)

        assert client.bucket == "test-bucket"
        url = client.generate_presigned_upload_url("abc-photo.png", "image/png", 10)
        assert url.startswith("https://test-account.r2.cloudflarestorage.com/test-bucket/abc-photo.png")
        assert "X-Amz-Expires=3600" in url
