"""
Reply Models

Detected labels and the reply email built from them.
"""

from pydantic import BaseModel, ConfigDict, Field


class Label(BaseModel):
    """A label detected in an image, confidence as a percentage."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Label name as returned by Rekognition")
    confidence: float = Field(..., ge=0, le=100, description="Confidence in percent")


class ReplyMessage(BaseModel):
    """Reply email ready to hand to SES."""

    model_config = ConfigDict(frozen=True)

    to_address: str = Field(..., description="Original sender, verbatim From header")
    from_address: str = Field(..., description="Configured sender identity")
    subject: str
    body_text: str
    body_html: str
    charset: str = "UTF-8"


class DeliveryReceipt(BaseModel):
    """SES acknowledgement of a sent reply."""

    model_config = ConfigDict(frozen=True)

    message_id: str = Field(..., description="SES message id of the reply")
