# Shared Tools
"""
AWS adapters used by the label pipeline.

Each adapter wraps one boto3 client, is built once per process and
holds no per-invocation state.
"""

from image_labeler.tools.s3 import EmailStore
from image_labeler.tools.rekognition import LabelDetector
from image_labeler.tools.ses import ReplyDispatcher

__all__ = [
    "EmailStore",
    "LabelDetector",
    "ReplyDispatcher",
]
