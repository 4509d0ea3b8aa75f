"""
Label Pipeline

Drives one SES notification through fetch → parse → scan → detect →
compose → dispatch, recording each step on a PipelineRun.

Failure policy:
- Fetch, parse, decode and detection errors abort the run and propagate.
- A rejected reply (DeliveryError) is logged and the run still completes.
"""

from dataclasses import dataclass, field
from typing import Any

import structlog

from image_labeler.config import Settings, get_settings
from image_labeler.exceptions import DeliveryError
from image_labeler.models.events import NotificationEvent
from image_labeler.models.reply import DeliveryReceipt, Label
from image_labeler.state_machine import PipelineState, validate_transition
from image_labeler.tools.rekognition import LabelDetector
from image_labeler.tools.s3 import EmailStore
from image_labeler.tools.ses import ReplyDispatcher
from lambdas.label_inbound_image.attachment_extractor import (
    Attachment,
    find_image_attachment,
    parse_raw_email,
    sender_address,
)
from lambdas.label_inbound_image.reply_composer import (
    compose_reply,
    render_labels_as_text,
)

log = structlog.get_logger()


@dataclass
class PipelineRun:
    """Progress and outcome of processing one notification."""

    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    message_id: str | None = None
    attachment: Attachment | None = None
    labels: list[Label] = field(default_factory=list)
    receipt: DeliveryReceipt | None = None
    skip_reason: str | None = None
    error: Exception | None = None
    delivery_error: DeliveryError | None = None

    def advance(self, new_state: PipelineState) -> None:
        """
        Move to the next state.

        Raises:
            InvalidStateTransitionError: If the transition is not allowed
        """
        validate_transition(self.state, new_state)
        log.debug(
            "pipeline_state_changed",
            message_id=self.message_id,
            from_state=self.state.value,
            to_state=new_state.value,
        )
        self.state = new_state
        self.history.append(new_state)

    def skip(self, reason: str) -> None:
        self.skip_reason = reason
        self.advance(PipelineState.SKIPPED)

    def abort(self, error: Exception) -> None:
        self.error = error
        if not self.state.is_terminal:
            self.advance(PipelineState.ABORTED)

    def summary(self) -> dict[str, Any]:
        """JSON-safe outcome for the Lambda response."""
        result: dict[str, Any] = {
            "message_id": self.message_id,
            "state": self.state.value,
        }
        if self.skip_reason:
            result["skip_reason"] = self.skip_reason
        if self.state == PipelineState.DONE:
            result["label_count"] = len(self.labels)
            result["reply_message_id"] = self.receipt.message_id if self.receipt else None
            result["reply_delivered"] = self.receipt is not None
        return result


class LabelPipeline:
    """
    Orchestrates label detection and reply for inbound emails.

    The store, detector and dispatcher are built once per process and
    shared; the pipeline itself keeps no per-notification state.
    """

    def __init__(
        self,
        store: EmailStore,
        detector: LabelDetector,
        dispatcher: ReplyDispatcher,
        *,
        from_address: str,
    ) -> None:
        self.store = store
        self.detector = detector
        self.dispatcher = dispatcher
        self.from_address = from_address

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "LabelPipeline":
        settings = settings or get_settings()
        return cls(
            EmailStore.from_settings(settings),
            LabelDetector.from_settings(settings),
            ReplyDispatcher.from_settings(settings),
            from_address=settings.ses_from_address,
        )

    def process(
        self,
        event: NotificationEvent,
        *,
        run: PipelineRun | None = None,
    ) -> PipelineRun:
        """
        Process one notification.

        Args:
            event: Parsed Lambda record
            run: Optional run record to fill in; a new one is created otherwise

        Returns:
            The finished run (DONE or SKIPPED)

        Raises:
            FetchError, MalformedEmailError, AttachmentDecodeError,
            DetectionServiceError: After moving the run to ABORTED
        """
        if run is None:
            run = PipelineRun()

        if not event.is_mail_event:
            log.info(
                "not_an_ses_event",
                event_source=event.event_source,
                note='event["Records"][n]["ses"] not found',
            )
            run.skip("not an SES event")
            return run

        run.message_id = event.message_id
        log.info(
            "message_id_received",
            message_id=run.message_id,
            subject=event.subject,
        )

        try:
            self._run(run)
        except Exception as e:
            failed_state = run.state
            run.abort(e)
            log.error(
                "pipeline_aborted",
                message_id=run.message_id,
                failed_state=failed_state.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        return run

    def _run(self, run: PipelineRun) -> None:
        run.advance(PipelineState.FETCHING)
        raw_email = self.store.fetch(run.message_id)

        run.advance(PipelineState.PARSING)
        msg = parse_raw_email(raw_email)

        run.advance(PipelineState.SCANNING)
        attachment = find_image_attachment(msg)
        if attachment is None:
            log.info("no_image_attachment", message_id=run.message_id)
            run.skip("no image attachment")
            return

        run.attachment = attachment
        target_address = sender_address(msg)
        image_bytes = attachment.decode()

        run.advance(PipelineState.DETECTING)
        run.labels = self.detector.detect(image_bytes)
        log.info(
            "image_labels",
            message_id=run.message_id,
            labels=render_labels_as_text(run.labels),
        )

        run.advance(PipelineState.COMPOSING)
        reply = compose_reply(run.labels, target_address, self.from_address)

        run.advance(PipelineState.DISPATCHING)
        try:
            run.receipt = self.dispatcher.send(reply)
        except DeliveryError as e:
            # Delivery failures never abort the run
            run.delivery_error = e
            log.error(
                "reply_delivery_failed",
                message_id=run.message_id,
                to=reply.to_address,
                error_code=e.error_code,
                error=str(e),
                exc_info=True,
            )

        run.advance(PipelineState.DONE)
