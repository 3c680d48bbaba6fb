"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class AuthenticationRequired(AppError):
    """Raised when a request needs a logged in user."""

    def __init__(self, message="Authentication required."):
        """Initialize the error."""
        super().__init__(message, 401)


class Unauthorized(AppError):
    """Raised when the current user may not perform an action."""

    def __init__(self, message="You are not allowed to perform this action."):
        """Initialize the error."""
        super().__init__(message, 403)


# Tournament registry


class TournamentNotFound(NotFoundError):
    def __init__(self, message="Tournament not found."):
        super().__init__(message)


class InvalidStatusTransition(ValidationError):
    def __init__(self, message="This status change is not allowed."):
        super().__init__(message)


# Enrollment


class NotOpenForRegistration(ValidationError):
    def __init__(
        self, message="This tournament is not accepting registrations at the moment."
    ):
        super().__init__(message)


class DuplicateParticipant(DuplicateResourceError):
    def __init__(self, message="User is already registered in this tournament."):
        super().__init__(message)


class ParticipantNotFound(NotFoundError):
    def __init__(self, message="User is not registered in this tournament."):
        super().__init__(message)


class RegistrationLocked(ValidationError):
    def __init__(
        self, message="Registrations cannot change once the tournament has started."
    ):
        super().__init__(message)


# Bracket generation


class InsufficientParticipants(ValidationError):
    def __init__(self, message="Not enough confirmed participants."):
        super().__init__(message)


class UnsupportedBracketType(ValidationError):
    def __init__(self, message="Bracket type not supported."):
        super().__init__(message)


# Match results


class TournamentNotActive(ValidationError):
    def __init__(self, message="The tournament is not in progress."):
        super().__init__(message)


class MatchNotFound(NotFoundError):
    def __init__(self, message="Match not found in this tournament."):
        super().__init__(message)


class MatchAlreadyFinalized(AppError):
    def __init__(self, message="This match has already been finished or cancelled."):
        super().__init__(message, 409)


class MatchIncomplete(ValidationError):
    def __init__(self, message="This match does not have both participants yet."):
        super().__init__(message)


class InvalidWinner(ValidationError):
    def __init__(self, message="The reported winner is not a participant of this match."):
        super().__init__(message)
