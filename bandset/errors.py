"""Error kinds shared by the data layer and the API.

Each exception maps to exactly one HTTP status in :mod:`bandset.api`.
"""


class BandSetError(Exception):
    status_code = 500

    def __init__(self, message: str = ''):
        super().__init__(message)
        self.message = message


class ValidationError(BandSetError, ValueError):
    status_code = 400


class UnauthorizedError(BandSetError):
    status_code = 401


class ForbiddenError(BandSetError, PermissionError):
    status_code = 403


class NotFoundError(BandSetError, LookupError):
    status_code = 404


class ConflictError(BandSetError):
    status_code = 409


class TransientStoreError(BandSetError):
    """The store failed in a way a retry may fix (lost connection, deadlock)."""

    status_code = 503
