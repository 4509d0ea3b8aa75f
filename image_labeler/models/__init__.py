# Shared Models
"""
Pydantic models for SES notifications, detected labels and replies.
"""

from image_labeler.models.events import (
    CommonHeaders,
    SesMail,
    SesReceipt,
    SesNotification,
    NotificationEvent,
    parse_lambda_event,
)
from image_labeler.models.reply import DeliveryReceipt, Label, ReplyMessage

__all__ = [
    # Events
    "CommonHeaders",
    "SesMail",
    "SesReceipt",
    "SesNotification",
    "NotificationEvent",
    "parse_lambda_event",
    # Reply
    "Label",
    "ReplyMessage",
    "DeliveryReceipt",
]
