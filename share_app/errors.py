"""
Error taxonomy for the share store.

Every error carries a stable ``code`` and the HTTP status it maps to.
main.py renders them as ``{"error": message, "code": code}``.
"""


class ShareStoreError(Exception):
    """Base class for all store-facing errors"""

    status_code: int = 500
    code: str = "error"

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFoundError(ShareStoreError):
    """Identifier unknown, already deleted, or payload missing"""
    status_code = 404
    code = "not_found"


class ExpiredError(ShareStoreError):
    """Record found but past its expiry (it has been purged)"""
    status_code = 410
    code = "expired"


class ConflictError(ShareStoreError):
    """Custom identifier already taken"""
    status_code = 409
    code = "conflict"


class TooLargeError(ShareStoreError):
    """Payload exceeds the configured size limit"""
    status_code = 413
    code = "too_large"


class PasswordRequiredError(ShareStoreError):
    """Record is password protected and no password was given"""
    status_code = 401
    code = "password_required"


class PasswordIncorrectError(ShareStoreError):
    """Password given but does not match"""
    status_code = 403
    code = "password_incorrect"


class InvalidInputError(ShareStoreError):
    """Malformed address, empty content, bad identifier, ..."""
    status_code = 400
    code = "invalid_input"


class StorageFailureError(ShareStoreError):
    """Underlying store unreachable or a write only partially succeeded"""
    status_code = 500
    code = "storage_failure"

    # Never shown to callers; the real cause is logged server-side
    public_message = "Internal storage error"


class CorruptRecordError(StorageFailureError):
    """A stored record could not be parsed back into its model"""
