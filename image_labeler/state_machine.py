"""
Pipeline State Machine

Defines the states one notification passes through and the valid
transitions between them.
"""

from enum import Enum
from typing import Final

import structlog

from image_labeler.exceptions import InvalidStateTransitionError

log = structlog.get_logger()


class PipelineState(str, Enum):
    """
    Pipeline state enum.

    A notification starts in IDLE and ends in exactly one of the
    terminal states DONE, SKIPPED or ABORTED.
    """

    IDLE = "IDLE"
    """Notification received, nothing done yet."""

    FETCHING = "FETCHING"
    """Reading the raw email from S3."""

    PARSING = "PARSING"
    """Decoding the raw bytes into a MIME tree."""

    SCANNING = "SCANNING"
    """Walking MIME parts for the first image attachment."""

    DETECTING = "DETECTING"
    """Image submitted to Rekognition."""

    COMPOSING = "COMPOSING"
    """Rendering the reply bodies."""

    DISPATCHING = "DISPATCHING"
    """Reply handed to SES."""

    DONE = "DONE"
    """Reply attempted (delivered or delivery failure logged)."""

    SKIPPED = "SKIPPED"
    """Not an SES event, or the email carries no image attachment."""

    ABORTED = "ABORTED"
    """A fatal error stopped processing; the error was propagated."""

    @property
    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no outgoing transitions)."""
        return self in TERMINAL_STATES

    @classmethod
    def from_string(cls, value: str) -> "PipelineState":
        """Convert string to PipelineState enum."""
        try:
            return cls(value.upper())
        except ValueError as e:
            raise ValueError(
                f"Invalid pipeline state: '{value}'. "
                f"Valid values are: {[s.value for s in cls]}"
            ) from e


TERMINAL_STATES: Final[frozenset[PipelineState]] = frozenset({
    PipelineState.DONE,
    PipelineState.SKIPPED,
    PipelineState.ABORTED,
})

# Key: current state, Value: set of allowed next states
VALID_TRANSITIONS: Final[dict[PipelineState, frozenset[PipelineState]]] = {
    PipelineState.IDLE: frozenset({
        PipelineState.FETCHING,
        PipelineState.SKIPPED,
        PipelineState.ABORTED,
    }),
    PipelineState.FETCHING: frozenset({
        PipelineState.PARSING,
        PipelineState.ABORTED,
    }),
    PipelineState.PARSING: frozenset({
        PipelineState.SCANNING,
        PipelineState.ABORTED,
    }),
    PipelineState.SCANNING: frozenset({
        PipelineState.DETECTING,
        PipelineState.SKIPPED,
        PipelineState.ABORTED,
    }),
    PipelineState.DETECTING: frozenset({
        PipelineState.COMPOSING,
        PipelineState.ABORTED,
    }),
    PipelineState.COMPOSING: frozenset({
        PipelineState.DISPATCHING,
        PipelineState.ABORTED,
    }),
    # A rejected reply still ends in DONE
    PipelineState.DISPATCHING: frozenset({
        PipelineState.DONE,
        PipelineState.ABORTED,
    }),
    PipelineState.DONE: frozenset(),
    PipelineState.SKIPPED: frozenset(),
    PipelineState.ABORTED: frozenset(),
}


def validate_transition(
    current_state: PipelineState | str,
    new_state: PipelineState | str,
    *,
    raise_on_invalid: bool = True,
) -> bool:
    """
    Validate that a state transition is allowed.

    Args:
        current_state: Current pipeline state
        new_state: Desired next state
        raise_on_invalid: If True, raise exception on invalid transition

    Returns:
        True if transition is valid

    Raises:
        InvalidStateTransitionError: If transition is invalid and raise_on_invalid=True
    """
    if isinstance(current_state, str):
        current_state = PipelineState.from_string(current_state)
    if isinstance(new_state, str):
        new_state = PipelineState.from_string(new_state)

    allowed = VALID_TRANSITIONS.get(current_state, frozenset())
    is_valid = new_state in allowed

    if not is_valid and raise_on_invalid:
        log.warning(
            "invalid_state_transition",
            current_state=current_state.value,
            new_state=new_state.value,
            allowed_transitions=sorted(s.value for s in allowed),
        )
        raise InvalidStateTransitionError(
            current_state=current_state.value,
            new_state=new_state.value,
            allowed_transitions=sorted(s.value for s in allowed),
        )

    return is_valid
