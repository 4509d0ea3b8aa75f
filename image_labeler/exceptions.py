"""
Custom Exceptions for the SES Image Labeler

All exceptions follow the pattern of specific, actionable errors
with context needed for debugging and logging.

Propagation policy:
- FetchError, MalformedEmailError, AttachmentDecodeError and
  DetectionServiceError abort the invocation and propagate to Lambda.
- DeliveryError is caught at the dispatch boundary and only logged.
"""

from dataclasses import dataclass
from typing import Any


class ImageLabelerError(Exception):
    """Base exception for the image labeler pipeline."""

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


@dataclass
class InvalidNotificationError(ImageLabelerError):
    """Lambda record claims to be an SES notification but cannot be read."""

    reason: str

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid SES notification: {reason}", reason=reason)


@dataclass
class InvalidStateTransitionError(ImageLabelerError):
    """Attempted invalid pipeline state transition."""

    current_state: str
    new_state: str
    allowed_transitions: list[str]

    def __init__(
        self,
        current_state: str,
        new_state: str,
        allowed_transitions: list[str],
    ) -> None:
        self.current_state = current_state
        self.new_state = new_state
        self.allowed_transitions = allowed_transitions
        super().__init__(
            f"Cannot transition from '{current_state}' to '{new_state}'. "
            f"Allowed transitions: {allowed_transitions}",
            current_state=current_state,
            new_state=new_state,
            allowed_transitions=allowed_transitions,
        )


@dataclass
class FetchError(ImageLabelerError):
    """Raw email could not be read from S3."""

    bucket: str
    key: str
    error_code: str | None = None
    error_message: str | None = None

    def __init__(
        self,
        bucket: str,
        key: str,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> None:
        self.bucket = bucket
        self.key = key
        self.error_code = error_code
        self.error_message = error_message
        super().__init__(
            f"S3 download failed for s3://{bucket}/{key}: "
            f"{error_message or 'Unknown error'}",
            bucket=bucket,
            key=key,
            error_code=error_code,
        )

    @property
    def not_found(self) -> bool:
        """True when the object (or bucket) does not exist."""
        return self.error_code in ("NoSuchKey", "NoSuchBucket", "404")


@dataclass
class MalformedEmailError(ImageLabelerError):
    """Raw email bytes are not a usable MIME message."""

    reason: str

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Malformed email: {reason}", reason=reason)


@dataclass
class AttachmentDecodeError(ImageLabelerError):
    """Image attachment payload is not valid base64."""

    content_type: str
    filename: str | None = None

    def __init__(
        self,
        content_type: str,
        filename: str | None = None,
        error_message: str | None = None,
    ) -> None:
        self.content_type = content_type
        self.filename = filename
        super().__init__(
            f"Could not decode {content_type} attachment: "
            f"{error_message or 'Unknown error'}",
            content_type=content_type,
            filename=filename,
        )


@dataclass
class DetectionServiceError(ImageLabelerError):
    """Rekognition label detection failed."""

    error_code: str | None = None
    error_message: str | None = None

    def __init__(
        self,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> None:
        self.error_code = error_code
        self.error_message = error_message
        super().__init__(
            f"Label detection failed: {error_message or 'Unknown error'}",
            error_code=error_code,
        )


@dataclass
class DeliveryError(ImageLabelerError):
    """SES rejected the reply email."""

    recipient: str
    error_code: str | None = None
    error_message: str | None = None

    def __init__(
        self,
        recipient: str,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> None:
        self.recipient = recipient
        self.error_code = error_code
        self.error_message = error_message
        super().__init__(
            f"SES send failed for {recipient}: {error_message or 'Unknown error'}",
            recipient=recipient,
            error_code=error_code,
        )
