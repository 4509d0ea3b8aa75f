"""
SES Tools

Sends the composed label reply through SES.
"""

import boto3
from botocore.exceptions import BotoCoreError, ClientError
import structlog

from image_labeler.config import Settings, get_settings
from image_labeler.exceptions import DeliveryError
from image_labeler.models.reply import DeliveryReceipt, ReplyMessage

log = structlog.get_logger()


def _get_client(settings: Settings | None = None):
    """Get SES client."""
    settings = settings or get_settings()
    return boto3.client("ses", **settings.ses_config)


class ReplyDispatcher:
    """Delivers ReplyMessages with SES SendEmail."""

    def __init__(self, client, *, configuration_set: str | None = None) -> None:
        self._client = client
        self.configuration_set = configuration_set

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ReplyDispatcher":
        settings = settings or get_settings()
        return cls(
            _get_client(settings),
            configuration_set=settings.ses_configuration_set,
        )

    def send(self, message: ReplyMessage) -> DeliveryReceipt:
        """
        Send a reply email.

        Args:
            message: Composed reply

        Returns:
            DeliveryReceipt with the SES message id

        Raises:
            DeliveryError: If SES rejects the request
        """
        send_params = {
            "Source": message.from_address,
            "Destination": {"ToAddresses": [message.to_address]},
            "Message": {
                "Subject": {"Data": message.subject, "Charset": message.charset},
                "Body": {
                    "Text": {"Data": message.body_text, "Charset": message.charset},
                    "Html": {"Data": message.body_html, "Charset": message.charset},
                },
            },
        }

        if self.configuration_set:
            send_params["ConfigurationSetName"] = self.configuration_set

        log.info(
            "sending_ses_email",
            to=message.to_address,
            subject=message.subject[:50],
        )

        try:
            response = self._client.send_email(**send_params)
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            error_message = e.response["Error"].get("Message")

            log.error(
                "ses_send_failed",
                to=message.to_address,
                error_code=error_code,
                error_message=error_message,
            )

            raise DeliveryError(
                recipient=message.to_address,
                error_code=error_code,
                error_message=error_message or str(e),
            ) from e
        except BotoCoreError as e:
            log.error("ses_send_failed", to=message.to_address, error=str(e))
            raise DeliveryError(
                recipient=message.to_address,
                error_message=str(e),
            ) from e

        receipt = DeliveryReceipt(message_id=response["MessageId"])

        log.info(
            "ses_email_sent",
            message_id=receipt.message_id,
            to=message.to_address,
        )

        return receipt
