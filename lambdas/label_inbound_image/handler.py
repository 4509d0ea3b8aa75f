"""
LabelInboundImage Lambda Handler

Main entry point for the SES receipt rule Lambda action.
Replies to the sender of each received email with the labels
Rekognition detects in its first image attachment.

Trigger: SES receipt rule (S3 action, then Lambda action)
Output: SES reply email to the original sender

Flow:
1. Parse the SES records from the Lambda payload
2. Fetch the raw email from S3 by message id
3. Find the first image/png or image/jpeg part
4. Send the image to Rekognition DetectLabels
5. Reply with the labels as text and HTML
"""

import json
import logging
from functools import lru_cache
from typing import Any

import structlog

from image_labeler.config import get_settings
from image_labeler.exceptions import InvalidNotificationError
from image_labeler.models.events import parse_lambda_event
from lambdas.label_inbound_image.pipeline import LabelPipeline

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)
logging.getLogger().setLevel(get_settings().log_level)

log = structlog.get_logger()


@lru_cache(maxsize=1)
def _get_pipeline() -> LabelPipeline:
    """Build the pipeline and its AWS clients once per Lambda container."""
    settings = get_settings()

    log.info(
        "pipeline_initialized",
        environment=settings.environment,
        bucket=settings.s3_bucket_name,
        region=settings.aws_region,
    )

    return LabelPipeline.from_settings(settings)


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    AWS Lambda handler for SES received-email notifications.

    Args:
        event: Lambda payload with SES `Records`
        context: Lambda context

    Returns:
        Response dict with per-record outcome

    Raises:
        ImageLabelerError: Any fatal pipeline error, so Lambda records the failure
    """
    request_id = getattr(context, "aws_request_id", "local")

    log.info(
        "processing_ses_notification",
        request_id=request_id,
        event_keys=list(event.keys()),
    )

    try:
        notifications = parse_lambda_event(event)
    except InvalidNotificationError as e:
        log.error("notification_parse_failed", request_id=request_id, error=str(e))
        raise

    if not notifications:
        log.info("no_records_in_event", request_id=request_id)
        return {
            "statusCode": 200,
            "body": json.dumps({"status": "skipped", "reason": "no records", "results": []}),
        }

    pipeline = _get_pipeline()
    results = [pipeline.process(notification).summary() for notification in notifications]

    log.info(
        "ses_notification_processed",
        request_id=request_id,
        states=[result["state"] for result in results],
    )

    return {
        "statusCode": 200,
        "body": json.dumps({"status": "processed", "results": results}),
    }
