"""
Attachment Extractor Module

Parses raw emails written to S3 by SES and finds the first image
attachment (image/png or image/jpeg) in MIME walk order.
"""

import base64
import email
import re
from dataclasses import dataclass
from email import errors as email_errors
from email.message import EmailMessage
from email.policy import default as default_policy

import structlog

from image_labeler.exceptions import AttachmentDecodeError, MalformedEmailError

log = structlog.get_logger()

# Base content types Rekognition accepts
IMAGE_CONTENT_TYPES = frozenset({"image/png", "image/jpeg"})

# Folding whitespace inside a raw header value
_FOLD = re.compile(r"\r?\n(?=[ \t])")

# Defects that leave the multipart tree unusable
_STRUCTURAL_DEFECTS = (
    email_errors.NoBoundaryInMultipartDefect,
    email_errors.StartBoundaryNotFoundDefect,
    email_errors.MultipartInvariantViolationDefect,
)


@dataclass(frozen=True)
class Attachment:
    """
    Image attachment as found in the MIME tree.

    `payload` is the part body exactly as carried in the message, i.e.
    base64 text for base64 transfer-encoded parts. Call `decode()` for
    the image bytes.
    """

    content_type: str
    payload: str
    filename: str | None = None
    content_disposition: str | None = None
    transfer_encoding: str | None = None

    def decode(self) -> bytes:
        """
        Decode the base64 payload.

        Raises:
            AttachmentDecodeError: If the payload is not valid base64 or is empty
        """
        # MIME wraps base64 at 76 columns
        compact = "".join(self.payload.split())
        try:
            content = base64.b64decode(compact, validate=True)
        except ValueError as e:
            raise AttachmentDecodeError(
                content_type=self.content_type,
                filename=self.filename,
                error_message=str(e),
            ) from e

        if not content:
            raise AttachmentDecodeError(
                content_type=self.content_type,
                filename=self.filename,
                error_message="empty payload",
            )

        return content


def parse_raw_email(raw_email: bytes | str) -> EmailMessage:
    """
    Parse raw email content (MIME format).

    Args:
        raw_email: Raw email as stored by SES

    Returns:
        Parsed message

    Raises:
        MalformedEmailError: If the content is not a usable MIME message
    """
    if not raw_email:
        raise MalformedEmailError("empty message")

    if isinstance(raw_email, bytes):
        msg = email.message_from_bytes(raw_email, policy=default_policy)
    else:
        msg = email.message_from_string(raw_email, policy=default_policy)

    if not msg.keys():
        raise MalformedEmailError("no headers found")

    for part in msg.walk():
        for defect in part.defects:
            if isinstance(defect, _STRUCTURAL_DEFECTS):
                raise MalformedEmailError(
                    f"{type(defect).__name__} in {part.get_content_type()} part"
                )

    return msg


def is_image_attachment(part: EmailMessage) -> bool:
    """Check whether a MIME part is a PNG or JPEG image."""
    # get_content_type() drops parameters such as `; name=photo.png`
    return part.get_content_type() in IMAGE_CONTENT_TYPES


def find_image_attachment(msg: EmailMessage) -> Attachment | None:
    """
    Return the first image part of a parsed message.

    Parts are visited depth-first, outer part before its subparts.
    Later image parts are ignored.
    """
    for part in msg.walk():
        if not is_image_attachment(part):
            continue

        cte = part.get("Content-Transfer-Encoding")
        attachment = Attachment(
            content_type=part.get_content_type(),
            payload=part.get_payload(),
            filename=part.get_filename(),
            content_disposition=part.get_content_disposition(),
            transfer_encoding=str(cte).lower() if cte else None,
        )

        log.info(
            "found_image_attachment",
            content_type=attachment.content_type,
            filename=attachment.filename,
            content_disposition=attachment.content_disposition,
        )

        return attachment

    return None


def extract(raw_email: bytes | str) -> Attachment | None:
    """
    Parse a raw email and return its first image attachment.

    Raises:
        MalformedEmailError: If the content is not a usable MIME message
    """
    return find_image_attachment(parse_raw_email(raw_email))


def sender_address(msg: EmailMessage) -> str:
    """
    Return the From header the reply goes back to.

    The value is the header text as received, unfolded but not decoded,
    so RFC 2047 encoded words stay encoded for SES.

    Raises:
        MalformedEmailError: If the message has no From header
    """
    for name, value in msg.raw_items():
        if name.lower() == "from":
            sender = _FOLD.sub("", value).strip()
            if sender:
                return sender
            break
    raise MalformedEmailError("no From header to reply to")
