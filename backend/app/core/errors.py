"""Typed billing errors.

Every error carries a stable machine-readable ``code`` and the HTTP status the
API boundary maps it to, so callers catch by type rather than by message:

    BillingError (base)
    +-- ValidationError           validation_error       422
    +-- InvalidStateError         invalid_state          409
    +-- NotFoundError             not_found              404
    +-- ConcurrencyConflictError  concurrency_conflict   409

Storage failures are not part of this hierarchy; they surface as a generic
server error.
"""

from typing import Any


class BillingError(Exception):
    code = "billing_error"
    status_code = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(BillingError):
    """Missing or invalid input; nothing was written."""

    code = "validation_error"
    status_code = 422


class InvalidStateError(BillingError):
    """The invoice's lifecycle state does not allow the requested change."""

    code = "invalid_state"
    status_code = 409


class NotFoundError(BillingError):
    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found", entity=entity, id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class ConcurrencyConflictError(BillingError):
    """The invoice changed underneath the caller; retry the whole operation."""

    code = "concurrency_conflict"
    status_code = 409
