"""
Event Models

Pydantic models for the SES receipt notification delivered to Lambda.
Only the members the pipeline reads are modelled; everything else in
the SES payload is ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from image_labeler.exceptions import InvalidNotificationError


class CommonHeaders(BaseModel):
    """Headers SES copies out of the received message."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    from_: list[str] = Field(default_factory=list, alias="from")
    to: list[str] = Field(default_factory=list)
    subject: str | None = None


class SesMail(BaseModel):
    """The `mail` object of an SES notification."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    message_id: str = Field(
        ...,
        alias="messageId",
        min_length=1,
        description="SES message id, also the S3 object key of the raw email",
    )
    source: str | None = Field(default=None, description="Envelope MAIL FROM")
    timestamp: str | None = Field(default=None, description="Time SES received the message")
    destination: list[str] = Field(default_factory=list)
    common_headers: CommonHeaders | None = Field(default=None, alias="commonHeaders")


class SesReceipt(BaseModel):
    """The `receipt` object of an SES notification."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    recipients: list[str] = Field(default_factory=list)
    action: dict[str, Any] = Field(default_factory=dict)


class SesNotification(BaseModel):
    """The `ses` member of a Lambda record."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    mail: SesMail
    receipt: SesReceipt | None = None


class NotificationEvent(BaseModel):
    """
    One Lambda record.

    The presence of `ses` marks the record as mail-related; records
    without it are skipped by the pipeline.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    event_source: str | None = Field(default=None, alias="eventSource")
    ses: SesNotification | None = None

    @property
    def is_mail_event(self) -> bool:
        return self.ses is not None

    @property
    def message_id(self) -> str | None:
        return self.ses.mail.message_id if self.ses else None

    @property
    def subject(self) -> str | None:
        if self.ses and self.ses.mail.common_headers:
            return self.ses.mail.common_headers.subject
        return None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "NotificationEvent":
        """
        Parse one Lambda record.

        Raises:
            InvalidNotificationError: If the record has an `ses` member
                that does not carry a usable message id
        """
        try:
            return cls.model_validate(record)
        except ValidationError as e:
            raise InvalidNotificationError(
                reason=f"{e.error_count()} validation error(s): "
                + "; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                )
            ) from e


def parse_lambda_event(event: dict[str, Any]) -> list[NotificationEvent]:
    """
    Split a Lambda invocation payload into notification events.

    A payload without `Records` yields no events.

    Raises:
        InvalidNotificationError: If a record cannot be parsed
    """
    records = event.get("Records") or []
    return [NotificationEvent.from_record(record) for record in records]
