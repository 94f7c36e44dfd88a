"""
Typed errors raised by the service layer.

Each error carries the HTTP status it maps to; main.py turns them into
``{"success": false, "message": ...}`` responses.
"""


class TripMateError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TripMateError):
    status_code = 400


class InvalidInviteError(TripMateError):
    status_code = 400


class InvalidStateError(TripMateError):
    status_code = 400


class AuthenticationError(TripMateError):
    status_code = 401


class PermissionDeniedError(TripMateError):
    status_code = 403


class NotFoundError(TripMateError):
    status_code = 404


class ConflictError(TripMateError):
    status_code = 409
