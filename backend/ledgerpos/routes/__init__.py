# Overview: Shared helpers for API blueprints; maps typed domain errors to HTTP responses.

from flask import jsonify

from ..errors import (
    ConcurrentUpdateError,
    CreditLimitExceededError,
    CustomerNotFoundError,
    CustomerRequiredError,
    InsufficientStockError,
    LedgerImmutableError,
    NoActiveShiftError,
    PosError,
    ProductNotFoundError,
    SaleNotFoundError,
    ShiftAlreadyOpenError,
    ShiftOwnershipError,
    StaffNotFoundError,
    ValidationError,
)

# Checked in order; first match wins
ERROR_STATUS = (
    ((ProductNotFoundError, CustomerNotFoundError, StaffNotFoundError, SaleNotFoundError), 404),
    ((InsufficientStockError, CreditLimitExceededError, ShiftAlreadyOpenError, NoActiveShiftError,
      ConcurrentUpdateError, LedgerImmutableError), 409),
    ((ShiftOwnershipError,), 403),
    ((ValidationError, CustomerRequiredError), 400),
)


def status_for(exc: PosError) -> int:
    for classes, status in ERROR_STATUS:
        if isinstance(exc, classes):
            return status
    return 400


def error_response(exc: PosError):
    return jsonify(exc.to_dict()), status_for(exc)


def internal_error():
    return jsonify({"error": "Internal server error", "code": "INTERNAL_ERROR"}), 500
