"""
Custom exceptions shared by all layers.

Rejections (subclasses of ActionRejectedError) are ordinary, non-fatal outcomes: the state is left untouched and
the Service turns them into a response for the participant.
InternalInvariantViolationError is NOT a rejection. It means the engine itself is broken for that match.
"""

from src.core.shared_types import RejectionReason


class GameError(Exception):
    """Top-level exception for anything raised by this application."""


# --- REJECTIONS ---
class ActionRejectedError(GameError):
    """An action was refused. Nothing was mutated."""

    reason: RejectionReason = RejectionReason.ILLEGAL_MOVE

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.reason.value)
        self.message = message or self.reason.value


class OutOfBoundsError(ActionRejectedError):
    reason = RejectionReason.OUT_OF_BOUNDS


class IllegalMoveError(ActionRejectedError):
    reason = RejectionReason.ILLEGAL_MOVE


class IllegalBurnError(ActionRejectedError):
    reason = RejectionReason.ILLEGAL_BURN


class NotYourTurnError(ActionRejectedError):
    reason = RejectionReason.NOT_YOUR_TURN


class WrongPhaseError(ActionRejectedError):
    reason = RejectionReason.WRONG_PHASE


class UnknownParticipantError(ActionRejectedError):
    reason = RejectionReason.UNKNOWN_PARTICIPANT


class UnknownMatchError(ActionRejectedError):
    reason = RejectionReason.UNKNOWN_MATCH


class InvalidConfigurationError(ActionRejectedError):
    """Raised for malformed match settings, both by the request validators and by the engine itself."""

    reason = RejectionReason.INVALID_CONFIGURATION


# --- DEFECTS ---
class InternalInvariantViolationError(GameError):
    """The AI or the rules engine produced something that fails its own checks. Always a bug."""


# --- USERS / PERSISTENCE ---
class RepositoryError(GameError):
    pass


class InvalidUsernameError(GameError):
    pass
