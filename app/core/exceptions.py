"""
Platform-wide exception hierarchy.

Services raise these; blueprints translate them to HTTP once through
``app.utils.errors.register_error_handlers``:

    NotFoundError    → 404   referenced entity absent
    ValidationError  → 400   precondition or validation failure
    ForbiddenError   → 403   caller lacks ownership / blind-review visibility
    ConflictError    → 409   duplicate assignment

Usage:
    from app.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Proposal", resource_id=42)
    raise ValidationError("Review sedang tidak aktif", details={"toggle": "reviewEnabled"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable model/entity name (e.g. "Proposal", "ReviewerAssignment").
        resource_id: The PK that was looked up. Included in logs and the message.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input or state violates a business rule (HTTP 400).

    Covers closed phases, out-of-range or skipped scores, already-submitted
    assessments, invalid toggle keys and weight-sum overflow.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ForbiddenError(Exception):
    """Raised when the caller may not act on or read the resource (HTTP 403).

    Used for assignment ownership checks and blind-review isolation.
    """

    def __init__(self, message: str = "Akses ditolak") -> None:
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate existing state (HTTP 409).

    Args:
        resource: Model name.
        field: The field that would be duplicated.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | int | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)
