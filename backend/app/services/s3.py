"""S3 service for chat attachment storage and retrieval."""

import asyncio
import logging
from dataclasses import dataclass

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import get_settings
from app.errors import StorageError

logger = logging.getLogger(__name__)
settings = get_settings()

_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


@dataclass
class StoredFile:
    data: bytes
    content_type: str


class AttachmentStorage:
    """Service for storing uploaded chat attachments in S3 (or any S3-compatible store)."""

    def __init__(self):
        """Initialize S3 client with credentials from settings."""
        client_kwargs = {
            "aws_access_key_id": settings.aws_access_key_id,
            "aws_secret_access_key": settings.aws_secret_access_key,
            "region_name": settings.aws_s3_region,
        }
        # Support MinIO / LocalStack by pointing to a custom endpoint
        if settings.aws_s3_endpoint_url:
            client_kwargs["endpoint_url"] = settings.aws_s3_endpoint_url

        self.s3_client = boto3.client("s3", **client_kwargs)
        self.bucket = settings.aws_s3_bucket
        self.prefix = settings.upload_key_prefix.strip("/")

    def _key(self, name: str) -> str:
        return f"{self.prefix}/{name}"

    async def put_file(self, name: str, data: bytes, content_type: str) -> None:
        """
        Upload a file under the attachment prefix.

        Args:
            name: Stored file name (already unique)
            data: Raw file bytes
            content_type: MIME type recorded on the object

        Raises:
            StorageError: If the S3 operation fails
        """
        try:
            await asyncio.to_thread(
                self.s3_client.put_object,
                Bucket=self.bucket,
                Key=self._key(name),
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.exception("Failed to upload attachment %s", name)
            raise StorageError("Failed to store uploaded file.") from e

    async def get_file(self, name: str) -> StoredFile | None:
        """
        Download a stored file.

        Returns None when the object does not exist.

        Raises:
            StorageError: If the S3 operation fails for any other reason
        """
        try:
            response = await asyncio.to_thread(
                self.s3_client.get_object, Bucket=self.bucket, Key=self._key(name)
            )
            data = await asyncio.to_thread(response["Body"].read)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_KEY_CODES:
                return None
            logger.exception("Failed to download attachment %s", name)
            raise StorageError("Failed to read stored file.") from e
        except BotoCoreError as e:
            logger.exception("Failed to download attachment %s", name)
            raise StorageError("Failed to read stored file.") from e

        return StoredFile(
            data=data,
            content_type=response.get("ContentType") or "application/octet-stream",
        )


# Singleton instance
attachment_storage = AttachmentStorage()


def get_attachment_storage() -> AttachmentStorage:
    return attachment_storage
