"""
Domain errors raised by the verification workflow
"""


class VerificationError(Exception):
    """Base error carrying a user-facing message and HTTP status"""
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFound(VerificationError):
    """Unknown, expired or already-decided record

    ``reason`` is internal only (logs and metrics); the message shown to
    callers stays the same for every reason.
    """
    status_code = 404

    def __init__(self, message, reason='unknown'):
        super().__init__(message)
        self.reason = reason


class Conflict(VerificationError):
    status_code = 409


class Forbidden(VerificationError):
    status_code = 403


class InvalidArgument(VerificationError):
    status_code = 400
