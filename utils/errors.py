"""
Typed failures raised by the calculators and the write-boundary services.

The HTTP layer (middlewares/error_handler.py) turns each of them into a status
code plus a machine-readable ``code``; nothing in here knows about HTTP beyond
the default status each class suggests.
"""


class DomainError(Exception):
    """Base class for business rule violations."""

    code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(DomainError):
    """Malformed numeric input: non-finite, negative, or a max score <= 0."""

    code = "VALIDATION_ERROR"


class RecordLockedError(DomainError):
    """Mutation attempted on a locked attendance day or a published grade."""

    code = "RECORD_LOCKED"


class NotFoundError(DomainError):
    code = "NOT_FOUND"
    status_code = 404


class DuplicateRecordError(DomainError):
    code = "DUPLICATE_RECORD"


class RecordInUseError(DomainError):
    """Delete attempted on a course or student that grades or attendance still reference."""

    code = "RECORD_IN_USE"
