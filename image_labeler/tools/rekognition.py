"""
Rekognition Tools

Label detection for a single image. One request per call; no retries,
caching or batching.
"""

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError
import structlog

from image_labeler.config import Settings, get_settings
from image_labeler.exceptions import DetectionServiceError
from image_labeler.models.reply import Label

log = structlog.get_logger()


def _get_client(settings: Settings | None = None):
    """Get Rekognition client."""
    settings = settings or get_settings()
    return boto3.client("rekognition", **settings.rekognition_config)


class LabelDetector:
    """Submits image bytes to Rekognition DetectLabels."""

    def __init__(
        self,
        client,
        *,
        max_labels: int | None = None,
        min_confidence: float | None = None,
    ) -> None:
        self._client = client
        self.max_labels = max_labels
        self.min_confidence = min_confidence

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "LabelDetector":
        settings = settings or get_settings()
        return cls(
            _get_client(settings),
            max_labels=settings.rekognition_max_labels,
            min_confidence=settings.rekognition_min_confidence,
        )

    def detect(self, image_bytes: bytes) -> list[Label]:
        """
        Detect labels in an image.

        Args:
            image_bytes: Decoded PNG or JPEG bytes

        Returns:
            Labels in the order Rekognition returned them

        Raises:
            DetectionServiceError: On any service or transport failure
        """
        params = {"Image": {"Bytes": image_bytes}}
        if self.max_labels is not None:
            params["MaxLabels"] = self.max_labels
        if self.min_confidence is not None:
            params["MinConfidence"] = self.min_confidence

        log.info(
            "detecting_labels",
            size_bytes=len(image_bytes),
            max_labels=self.max_labels,
            min_confidence=self.min_confidence,
        )

        try:
            response = self._client.detect_labels(**params)
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            error_message = e.response["Error"].get("Message")

            log.error(
                "rekognition_detect_failed",
                error_code=error_code,
                error_message=error_message,
            )

            raise DetectionServiceError(
                error_code=error_code,
                error_message=error_message or str(e),
            ) from e
        except BotoCoreError as e:
            log.error("rekognition_detect_failed", error=str(e))
            raise DetectionServiceError(error_message=str(e)) from e

        try:
            labels = [
                Label(name=item["Name"], confidence=item["Confidence"])
                for item in response.get("Labels", [])
            ]
        except (KeyError, TypeError, ValidationError) as e:
            log.error("rekognition_response_invalid", error=str(e))
            raise DetectionServiceError(
                error_message=f"Unexpected DetectLabels response: {e}",
            ) from e

        log.info("labels_detected", label_count=len(labels))

        return labels
