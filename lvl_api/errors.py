"""Domain errors surfaced to API callers.

Every error derives from ``ValueError`` so code that treats bad input as a
``ValueError`` keeps working. The HTTP mapping lives in
``lvl_api.middleware.error_handler``.
"""


class LvlError(ValueError):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SelfReference(LvlError):
    """Both sides of a relationship are the same user."""

    status_code = 400

    def __init__(self, message: str = "Cannot target yourself"):
        super().__init__(message)


class NotFound(LvlError):
    status_code = 404

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class InvalidTransition(LvlError):
    """The action is not legal from the pair's current state."""

    status_code = 409


class Forbidden(LvlError):
    status_code = 403


class RateLimited(LvlError):
    status_code = 429


class TransientError(LvlError):
    """Nothing was committed; the caller may retry the same request."""

    status_code = 503
    retry_after = 1


class ConcurrentModification(TransientError):
    def __init__(self, message: str = "Relationship changed concurrently, retry"):
        super().__init__(message)


class StorageUnavailable(TransientError):
    def __init__(self, message: str = "Storage temporarily unavailable, retry"):
        super().__init__(message)
