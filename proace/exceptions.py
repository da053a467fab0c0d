"""
Exception hierarchy for the ProAce prediction application.

Service functions raise these; the app factory turns them into JSON error
responses carrying ``status_code``.
"""


class ProAceError(Exception):
    """Base class for all application errors"""

    status_code = 500

    def __init__(self, message=None):
        super().__init__(message)
        self.message = message or self.__class__.__doc__

    def to_dict(self):
        return {"message": self.message, "error": self.__class__.__name__}


class NotFoundError(ProAceError):
    """Referenced record does not exist"""

    status_code = 404


class InvalidStateError(ProAceError):
    """Operation is not allowed in the record's current state"""

    status_code = 409


class ValidationError(ProAceError):
    """Invalid input data"""

    status_code = 400


class AccessDeniedError(ProAceError):
    """Caller is not allowed to perform this operation"""

    status_code = 403


class PersistenceError(ProAceError):
    """Database write failed and was rolled back"""

    status_code = 500
