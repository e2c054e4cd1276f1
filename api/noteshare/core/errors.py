"""
Error taxonomy for the NoteShare API.

Services raise these; the handlers registered in ``main`` turn them into
``{"error": message}`` JSON responses with the class status code.
"""


class NoteShareError(Exception):
    """Base exception for NoteShare"""
    status_code: int = 500

    def __init__(self, message: str = "Internal server error", status_code: int = None):
        self.message = message
        if status_code:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(NoteShareError):
    """Malformed or missing request field"""
    status_code = 400

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message)


class NoFileProvided(ValidationError):
    def __init__(self, message: str = "File required"):
        super().__init__(message)


class ConflictError(NoteShareError):
    """
    Raised when a write collides with a uniqueness rule.

    Reported as 400 rather than 409 so existing clients keep working.
    """
    status_code = 400

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message)


class DuplicateEmail(ConflictError):
    def __init__(self, message: str = "Email already registered"):
        super().__init__(message)


class AuthenticationError(NoteShareError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class InvalidCredentials(AuthenticationError):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class MissingToken(AuthenticationError):
    """No bearer credential supplied"""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class InvalidToken(AuthenticationError):
    """Bearer credential supplied but it fails verification"""
    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class NotFoundError(NoteShareError):
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class UpstreamError(NoteShareError):
    """The generative-AI provider failed or answered with something unusable"""
    status_code = 502

    def __init__(self, message: str = "Upstream service failed"):
        super().__init__(message)
