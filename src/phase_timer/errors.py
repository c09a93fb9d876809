class PhaseTimerError(Exception):
    """Base exception for the phase timer core."""


class ValidationError(PhaseTimerError):
    """Raised when timer durations are not finite positive numbers."""


class IllegalTransition(PhaseTimerError):
    """Raised when an operation is not allowed in the current phase."""

    def __init__(self, reason: str, message: str = ""):
        super().__init__(message or reason)
        self.reason = reason


class CollaboratorFailure(PhaseTimerError):
    """Raised by host adapters when a scheduling or notification call fails."""


class StateDecodeError(PhaseTimerError):
    """Raised when a persisted config or state record cannot be decoded."""
