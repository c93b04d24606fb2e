# src/logstream/contracts/results.py
"""Session outcomes.

These types answer: "How did a streaming session end, and what did it
deliver before it ended?"
"""

from __future__ import annotations

from dataclasses import dataclass

from logstream.contracts.enums import SessionOutcome
from logstream.contracts.errors import StreamError


@dataclass(frozen=True, slots=True)
class SessionResult:
    """Final state of one streaming session.

    Attributes:
        outcome: How the session ended
        status_code: HTTP status of the response, None if no response arrived
        frames_decoded: Complete frames decoded into batches
        envelopes_written: Lines written to the sink
        error: Failure cause when outcome is FAILED, otherwise None
    """

    outcome: SessionOutcome
    status_code: int | None = None
    frames_decoded: int = 0
    envelopes_written: int = 0
    error: StreamError | None = None

    def __post_init__(self) -> None:
        if (self.outcome is SessionOutcome.FAILED) != (self.error is not None):
            raise ValueError(f"SessionResult: error must be set if and only if outcome is FAILED (outcome={self.outcome})")

    @property
    def succeeded(self) -> bool:
        """True when the session ended without failure or rejection."""
        return self.outcome in (SessionOutcome.COMPLETED, SessionOutcome.CANCELLED)
