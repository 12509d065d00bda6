"""
Domain errors raised by the service layer.
Each carries the HTTP status the app factory answers with.
"""


class ClinicError(Exception):
    status_code = 400

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {'success': False, 'error': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(ClinicError):
    status_code = 400


class NotFoundError(ClinicError):
    status_code = 404


class LedgerConflictError(ClinicError):
    """The ledger row changed since the caller last read it."""
    status_code = 409
