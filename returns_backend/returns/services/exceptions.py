# returns/services/exceptions.py

"""
RETURNS DOMAIN ERRORS

Every error carries a stable machine-readable code. The API maps
codes to HTTP statuses in one place (returns.views.returns).
"""


class ReturnError(Exception):
    code = "RETURN_ERROR"

    def __init__(self, message: str = "", **context):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.context = context

    @property
    def message(self) -> str:
        return str(self)


class ReturnNotFoundError(ReturnError):
    """Return, sale or sale line not found."""

    code = "NOT_FOUND"


class ReturnValidationError(ReturnError):
    """Input violates a business rule."""

    code = "VALIDATION_ERROR"


class InvalidReturnTransitionError(ReturnError):
    """Operation not allowed from the return's current status."""

    code = "INVALID_STATE_TRANSITION"


class ReturnConcurrencyError(ReturnError):
    """The return changed status between read and write."""

    code = "CONCURRENCY_CONFLICT"
