"""
Pytest Configuration and Shared Fixtures

Provides moto AWS mocking, raw MIME emails, SES Lambda events and
test utilities.
"""

import os
from email.message import EmailMessage
from typing import Any, Callable
from uuid import uuid4

import boto3
import pytest
from moto import mock_aws

# Set test environment before importing application modules
os.environ["IMAGE_LABELER_S3_BUCKET_NAME"] = "test-ses-emails"
os.environ["IMAGE_LABELER_SES_FROM_ADDRESS"] = "no-reply@example.com"
os.environ["IMAGE_LABELER_AWS_REGION"] = "us-west-2"
os.environ["IMAGE_LABELER_LOG_LEVEL"] = "DEBUG"
os.environ["AWS_DEFAULT_REGION"] = "us-west-2"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"

TEST_BUCKET = "test-ses-emails"
TEST_FROM_ADDRESS = "no-reply@example.com"

# PNG signature, base64 "iVBORw0KGgo="
PNG_BYTES = b"\x89PNG\r\n\x1a\n"


# --- AWS Mocking Fixtures ---


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for moto."""
    return {
        "aws_access_key_id": "testing",
        "aws_secret_access_key": "testing",
        "region_name": "us-west-2",
    }


@pytest.fixture
def mock_s3(aws_credentials):
    """Create a mocked S3 bucket for received emails."""
    with mock_aws():
        s3 = boto3.client("s3", **aws_credentials)
        s3.create_bucket(
            Bucket=TEST_BUCKET,
            CreateBucketConfiguration={"LocationConstraint": "us-west-2"},
        )
        yield s3


@pytest.fixture
def mock_ses(aws_credentials):
    """Create a mocked SES client with verified sender identity."""
    with mock_aws():
        ses = boto3.client("ses", **aws_credentials)
        ses.verify_email_identity(EmailAddress=TEST_FROM_ADDRESS)
        yield ses


@pytest.fixture
def mock_aws_all(aws_credentials):
    """Mock S3 and SES together, as used by the Lambda."""
    with mock_aws():
        s3 = boto3.client("s3", **aws_credentials)
        s3.create_bucket(
            Bucket=TEST_BUCKET,
            CreateBucketConfiguration={"LocationConstraint": "us-west-2"},
        )

        ses = boto3.client("ses", **aws_credentials)
        ses.verify_email_identity(EmailAddress=TEST_FROM_ADDRESS)

        yield {
            "s3": s3,
            "ses": ses,
        }


# --- ID Fixtures ---


@pytest.fixture
def message_id() -> str:
    """SES message id (also the S3 object key)."""
    return f"o3vrnil0e2ic28trm7dfhrc2v0cnbeccl4nbp{uuid4().hex[:8]}"


@pytest.fixture
def sender() -> str:
    """From header of the received email."""
    return "Jane Doe <jane.doe@example.org>"


# --- Image Fixtures ---


@pytest.fixture
def jpeg_bytes() -> bytes:
    """Ten bytes standing in for a JPEG."""
    return b"\xff\xd8\xff\xe0\x00\x10JFIF"


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


# --- Email Fixtures ---


@pytest.fixture
def build_email(sender: str) -> Callable[..., bytes]:
    """
    Factory for raw MIME emails.

    Usage:
        build_email(attachments=[("image/jpeg", data, "cat.jpg")])
    """

    def _build(
        attachments: list[tuple[str, bytes, str]] | None = None,
        *,
        from_address: str | None = sender,
        subject: str = "What is in this picture?",
        body: str = "See attached.",
    ) -> bytes:
        msg = EmailMessage()
        if from_address is not None:
            msg["From"] = from_address
        msg["To"] = "labels@example.com"
        msg["Subject"] = subject
        msg.set_content(body)

        for content_type, data, filename in attachments or []:
            maintype, subtype = content_type.split("/")
            msg.add_attachment(data, maintype=maintype, subtype=subtype, filename=filename)

        return msg.as_bytes()

    return _build


@pytest.fixture
def email_with_named_png(sender: str) -> bytes:
    """Multipart email whose image part carries a name parameter."""
    return f"""From: {sender}
To: labels@example.com
Subject: photo
MIME-Version: 1.0
Content-Type: multipart/mixed; boundary="XYZ"

--XYZ
Content-Type: text/plain; charset="utf-8"

Here you go.
--XYZ
Content-Type: image/png; name=photo.png
Content-Transfer-Encoding: base64
Content-Disposition: attachment; filename=photo.png

iVBORw0KGgo=
--XYZ--
""".encode()


@pytest.fixture
def email_with_nested_parts(sender: str) -> bytes:
    """
    Nested multipart email.

    Document order: mixed, alternative, text/plain, related, text/html,
    image/png (inline), application/pdf, image/jpeg.
    """
    return f"""From: {sender}
To: labels@example.com
Subject: nested
MIME-Version: 1.0
Content-Type: multipart/mixed; boundary="outer"

--outer
Content-Type: multipart/alternative; boundary="alt"

--alt
Content-Type: text/plain

plain body
--alt
Content-Type: multipart/related; boundary="rel"

--rel
Content-Type: text/html

<p>html body <img src="cid:logo"></p>
--rel
Content-Type: image/png
Content-Transfer-Encoding: base64
Content-Disposition: inline
Content-ID: <logo>

iVBORw0KGgo=
--rel--
--alt--
--outer
Content-Type: application/pdf; name=report.pdf
Content-Transfer-Encoding: base64
Content-Disposition: attachment; filename=report.pdf

JVBERi0xLjQK
--outer
Content-Type: image/jpeg; name=cat.jpg
Content-Transfer-Encoding: base64
Content-Disposition: attachment; filename=cat.jpg

/9j/4AAQSkZJRg==
--outer--
""".encode()


# --- Event Fixtures ---


@pytest.fixture
def ses_record() -> Callable[[str], dict[str, Any]]:
    """Factory for one SES Lambda-action record."""

    def _record(message_id: str) -> dict[str, Any]:
        return {
            "eventSource": "aws:ses",
            "eventVersion": "1.0",
            "ses": {
                "mail": {
                    "timestamp": "2025-02-06T15:30:00.000Z",
                    "source": "jane.doe@example.org",
                    "messageId": message_id,
                    "destination": ["labels@example.com"],
                    "headersTruncated": False,
                    "headers": [],
                    "commonHeaders": {
                        "returnPath": "jane.doe@example.org",
                        "from": ["Jane Doe <jane.doe@example.org>"],
                        "to": ["labels@example.com"],
                        "messageId": "<abc123@mail.example.org>",
                        "subject": "What is in this picture?",
                    },
                },
                "receipt": {
                    "timestamp": "2025-02-06T15:30:00.000Z",
                    "processingTimeMillis": 420,
                    "recipients": ["labels@example.com"],
                    "spamVerdict": {"status": "PASS"},
                    "virusVerdict": {"status": "PASS"},
                    "action": {
                        "type": "Lambda",
                        "functionArn": "arn:aws:lambda:us-west-2:123456789012:function:SesReceivedEmailProcessor",
                        "invocationType": "Event",
                    },
                },
            },
        }

    return _record


@pytest.fixture
def ses_event(ses_record, message_id: str) -> dict[str, Any]:
    """Lambda payload for one received email."""
    return {"Records": [ses_record(message_id)]}


@pytest.fixture
def non_ses_event() -> dict[str, Any]:
    """Lambda payload from some other trigger (S3 put)."""
    return {
        "Records": [
            {
                "eventSource": "aws:s3",
                "eventName": "ObjectCreated:Put",
                "s3": {"bucket": {"name": TEST_BUCKET}, "object": {"key": "abc"}},
            }
        ]
    }
