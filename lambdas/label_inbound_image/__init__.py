"""
LabelInboundImage Lambda

Replies to inbound emails with the labels Rekognition detects in the
first image attachment.

Flow:
    Sender email
    → SES Receipt Rule (S3 action, Lambda action)
    → This Lambda
    → Rekognition DetectLabels
    → SES reply to sender
"""

from lambdas.label_inbound_image.attachment_extractor import (
    Attachment,
    extract,
    find_image_attachment,
    is_image_attachment,
    parse_raw_email,
)
from lambdas.label_inbound_image.handler import lambda_handler
from lambdas.label_inbound_image.pipeline import LabelPipeline, PipelineRun
from lambdas.label_inbound_image.reply_composer import (
    compose_reply,
    render_html,
    render_labels_as_text,
)

__all__ = [
    "Attachment",
    "LabelPipeline",
    "PipelineRun",
    "compose_reply",
    "extract",
    "find_image_attachment",
    "is_image_attachment",
    "lambda_handler",
    "parse_raw_email",
    "render_html",
    "render_labels_as_text",
]
