class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400
    kind = "DOMAIN_ERROR"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400
    kind = "VALIDATION_ERROR"


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    status_code = 404
    kind = "NOT_FOUND"


class ConflictError(DomainError):
    """Raised when a state invariant would be violated (duplicates, overlaps, open punches)."""

    status_code = 409
    kind = "CONFLICT"


class InsufficientBalanceError(DomainError):
    """Raised when requested leave days exceed the remaining balance."""

    status_code = 422
    kind = "INSUFFICIENT_BALANCE"


class EligibilityError(DomainError):
    """Raised when a punch is denied by off days, leave or the shift window."""

    status_code = 403
    kind = "NOT_ELIGIBLE"


class DataIntegrityError(DomainError):
    """Raised when stored data cannot be interpreted (e.g. malformed location JSON)."""

    status_code = 500
    kind = "DATA_INTEGRITY_ERROR"


class InternalError(DomainError):
    """Raised when the store fails unexpectedly. Carries no internal detail."""

    status_code = 500
    kind = "INTERNAL_ERROR"
