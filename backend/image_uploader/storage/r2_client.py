"""
Object storage client for the upload bucket (Cloudflare R2 over the S3 API).

Browser clients upload directly to the bucket with presigned PUT URLs,
so this client only signs URLs and deletes objects. It never sees file
bytes.
"""
import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from image_uploader.config import Settings
from image_uploader.errors import AuthorizationBackendError, DeletionBackendError

logger = logging.getLogger(__name__)

# Error codes S3-compatible backends use for an absent object
NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class R2Client:
    """
    Signs upload URLs and deletes objects in one bucket.

    Built once at startup from explicit settings and shared by reference.
    """

    def __init__(self, settings: Settings, client=None):
        """
        Build the boto3 client unless one is injected.

        Args:
            settings: Storage endpoint, credentials and bucket
            client: Pre-built boto3 S3 client (tests inject a stub here)
        """
        self._settings = settings
        if client is None:
            client = boto3.client(
                's3',
                endpoint_url=settings.r2_endpoint,
                aws_access_key_id=settings.r2_access_key,
                aws_secret_access_key=settings.r2_secret_key,
                region_name=settings.r2_region,
                config=Config(
                    signature_version='s3v4',
                    s3={'addressing_style': 'path'}  # R2 uses path-style
                )
            )
        self._client = client
        logger.info(f"R2 client initialized for bucket: {settings.r2_bucket}")

    @property
    def bucket(self) -> str:
        return self._settings.r2_bucket

    @property
    def default_expiration(self) -> int:
        return self._settings.r2_presign_expiration

    def generate_presigned_upload_url(
        self,
        object_key: str,
        content_type: str,
        content_length: int,
        expiration: Optional[int] = None
    ) -> str:
        """
        Generate a presigned PUT URL for direct upload.

        Args:
            object_key: The S3 object key (path in bucket)
            content_type: MIME type of the file (e.g., image/png)
            content_length: Declared size in bytes
            expiration: URL expiration in seconds (default from settings)

        Returns:
            Presigned URL string

        Raises:
            AuthorizationBackendError: if the backend rejects the signing request

        Security:
            - URL expires after specified time
            - Only allows PUT (upload), not GET
            - Content-Type and Content-Length must match what was signed
        """
        if expiration is None:
            expiration = self.default_expiration

        try:
            url = self._client.generate_presigned_url(
                ClientMethod='put_object',
                Params={
                    'Bucket': self.bucket,
                    'Key': object_key,
                    'ContentType': content_type,
                    'ContentLength': content_length,
                },
                ExpiresIn=expiration
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to generate presigned URL for {object_key}: {e}")
            raise AuthorizationBackendError(
                "Failed to generate upload URL",
                context={"object_key": object_key},
                cause=e
            )

        logger.debug(f"Generated presigned URL for {object_key}")
        return url

    def delete_object(self, object_key: str) -> bool:
        """
        Delete an object from the bucket.

        Args:
            object_key: The S3 object key to delete

        Returns:
            True if the object was deleted, False if it did not exist

        Raises:
            DeletionBackendError: on any backend failure other than "not found"
        """
        try:
            self._client.delete_object(Bucket=self.bucket, Key=object_key)
        except ClientError as e:
            # If object doesn't exist, the end state is already reached
            if e.response.get('Error', {}).get('Code') in NOT_FOUND_CODES:
                logger.debug(f"Object {object_key} not found in R2 (already deleted)")
                return False
            logger.error(f"Failed to delete object {object_key} from R2: {e}")
            raise DeletionBackendError(
                "Failed to delete file.",
                context={"object_key": object_key},
                cause=e
            )
        except BotoCoreError as e:
            logger.error(f"Storage unreachable deleting {object_key}: {e}")
            raise DeletionBackendError(
                "Failed to delete file.",
                context={"object_key": object_key},
                cause=e
            )

        logger.debug(f"Deleted object {object_key} from R2")
        return True
