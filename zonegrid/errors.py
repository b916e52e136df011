"""
Error Types

Typed failures raised by the services and mapped to JSON responses by the
handlers registered in the application factory.
"""


class ZoneGridError(Exception):
    """Base class for every failure the services raise on purpose."""

    status_code = 500
    retryable = False

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def status(self):
        return 'fail' if 400 <= self.status_code < 500 else 'error'

    def to_dict(self):
        return {'status': self.status, 'message': self.message}


class ValidationError(ZoneGridError):
    """Caller input is malformed or out of range."""
    status_code = 400


class NotFoundError(ZoneGridError):
    """A warehouse or zone referenced by id does not exist."""
    status_code = 404


class ConflictError(ZoneGridError):
    """The request clashes with the current state; nothing was changed."""
    status_code = 409


class ConfigurationError(ZoneGridError):
    """The stored data cannot answer the request and needs an operator."""
    status_code = 500


class StorageError(ZoneGridError):
    """The backing store failed or timed out. Safe to retry."""
    status_code = 503
    retryable = True

    def to_dict(self):
        data = super().to_dict()
        data['retryable'] = True
        return data
