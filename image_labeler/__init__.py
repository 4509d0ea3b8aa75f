# Shared Infrastructure for the SES Image Labeler
"""
Shared infrastructure for the image labeling Lambda.

This package provides:
- Pipeline state machine (PipelineState, valid transitions)
- Pydantic models for SES notifications, labels and replies
- AWS adapters for S3, Rekognition and SES
- Configuration management
- Custom exceptions
"""

from image_labeler.state_machine import PipelineState, VALID_TRANSITIONS, validate_transition
from image_labeler.exceptions import (
    ImageLabelerError,
    InvalidNotificationError,
    InvalidStateTransitionError,
    FetchError,
    MalformedEmailError,
    AttachmentDecodeError,
    DetectionServiceError,
    DeliveryError,
)
from image_labeler.config import Settings, get_settings

__all__ = [
    # State machine
    "PipelineState",
    "VALID_TRANSITIONS",
    "validate_transition",
    # Exceptions
    "ImageLabelerError",
    "InvalidNotificationError",
    "InvalidStateTransitionError",
    "FetchError",
    "MalformedEmailError",
    "AttachmentDecodeError",
    "DetectionServiceError",
    "DeliveryError",
    # Config
    "Settings",
    "get_settings",
]
