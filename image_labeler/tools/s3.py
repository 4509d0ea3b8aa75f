"""
S3 Tools

Read access to the raw emails an SES receipt rule writes to S3.
"""

import boto3
from botocore.exceptions import BotoCoreError, ClientError
import structlog

from image_labeler.config import Settings, get_settings
from image_labeler.exceptions import FetchError

log = structlog.get_logger()


def _get_client(settings: Settings | None = None):
    """Get S3 client."""
    settings = settings or get_settings()
    return boto3.client("s3", **settings.s3_config)


class EmailStore:
    """
    Raw email store backed by one S3 bucket.

    SES writes each received message to `{key_prefix}{messageId}`.
    The store holds a boto3 client and is safe to share across invocations.
    """

    def __init__(self, client, bucket: str, *, key_prefix: str = "") -> None:
        self._client = client
        self.bucket = bucket
        self.key_prefix = key_prefix

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "EmailStore":
        settings = settings or get_settings()
        return cls(
            _get_client(settings),
            settings.s3_bucket_name,
            key_prefix=settings.s3_key_prefix,
        )

    def object_key(self, message_id: str) -> str:
        return f"{self.key_prefix}{message_id}"

    def fetch(self, message_id: str) -> bytes:
        """
        Fetch a raw email by SES message id.

        Args:
            message_id: SES message id

        Returns:
            Raw email content as bytes

        Raises:
            FetchError: If the object is missing or the read fails
        """
        key = self.object_key(message_id)

        log.info("fetching_email_from_s3", bucket=self.bucket, key=key)

        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
            content = response["Body"].read()
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            error_message = e.response["Error"].get("Message")

            if error_code in ("NoSuchKey", "NoSuchBucket", "404"):
                log.warning("email_not_found", bucket=self.bucket, key=key)
            else:
                log.error("s3_fetch_failed", bucket=self.bucket, key=key, error=str(e))

            raise FetchError(
                bucket=self.bucket,
                key=key,
                error_code=error_code,
                error_message=error_message or str(e),
            ) from e
        except BotoCoreError as e:
            log.error("s3_fetch_failed", bucket=self.bucket, key=key, error=str(e))
            raise FetchError(
                bucket=self.bucket,
                key=key,
                error_message=str(e),
            ) from e

        log.debug(
            "email_fetched_from_s3",
            bucket=self.bucket,
            key=key,
            size_bytes=len(content),
        )

        return content
