# Overview: Typed domain errors raised by the sale transaction engine.

"""
Domain error taxonomy.

Every rejection carries a machine-readable ``code`` and a ``details`` dict with
the names and numbers a caller needs to render a precise message. Routes map
``code`` to an HTTP status; services never translate these into generic
failures.
"""


class PosError(Exception):
    """Base class for expected, caller-recoverable rejections."""

    code = "POS_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "details": self.details}


# -- not found --

class ProductNotFoundError(PosError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id, field: str = "product_id"):
        super().__init__(f"Product not found: {product_id}", {field: product_id})


class CustomerNotFoundError(PosError):
    code = "CUSTOMER_NOT_FOUND"

    def __init__(self, customer_id, field: str = "customer_id"):
        super().__init__(f"Customer not found: {customer_id}", {field: customer_id})


class StaffNotFoundError(PosError):
    code = "STAFF_NOT_FOUND"

    def __init__(self, staff_id):
        super().__init__(f"Staff member not found: {staff_id}", {"staff_id": staff_id})


class SaleNotFoundError(PosError):
    code = "SALE_NOT_FOUND"

    def __init__(self, sale_id):
        super().__init__(f"Sale not found: {sale_id}", {"sale_id": sale_id})


# -- stock / credit --

class InsufficientStockError(PosError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}, Requested: {requested}",
            {"product_name": product_name, "available": available, "requested": requested},
        )
        self.product_name = product_name
        self.available = available
        self.requested = requested


class CustomerRequiredError(PosError):
    code = "CUSTOMER_REQUIRED"

    def __init__(self):
        super().__init__("Credit sale requires a linked customer")


class CreditLimitExceededError(PosError):
    code = "CREDIT_LIMIT_EXCEEDED"

    def __init__(self, customer_name: str, limit: int, new_balance: int):
        super().__init__(
            f"Credit limit exceeded for {customer_name}. "
            f"Limit: {limit / 100:.2f}, New balance would be: {new_balance / 100:.2f}",
            {"customer_name": customer_name, "limit": limit, "new_balance": new_balance},
        )
        self.customer_name = customer_name
        self.limit = limit
        self.new_balance = new_balance


# -- shifts --

class ShiftAlreadyOpenError(PosError):
    code = "SHIFT_ALREADY_OPEN"

    def __init__(self, staff_name: str, shift_id: int | None = None):
        super().__init__(
            f"A shift is already open for {staff_name}",
            {"staff_name": staff_name, "shift_id": shift_id},
        )


class NoActiveShiftError(PosError):
    code = "NO_ACTIVE_SHIFT"

    def __init__(self, shift_id=None):
        super().__init__("No active shift found", {"shift_id": shift_id})


class ShiftOwnershipError(PosError):
    code = "SHIFT_NOT_OWNED"

    def __init__(self, shift_id: int):
        super().__init__(
            "Only the shift owner can close this shift without manager approval",
            {"shift_id": shift_id},
        )


# -- validation --

class ValidationError(PosError):
    code = "VALIDATION_ERROR"


class InvalidSaleError(ValidationError):
    code = "INVALID_SALE"


class InvalidAdjustmentError(ValidationError):
    code = "INVALID_ADJUSTMENT"


class InvalidAmountError(ValidationError):
    code = "INVALID_AMOUNT"


class ProductUnavailableError(ValidationError):
    code = "PRODUCT_UNAVAILABLE"

    def __init__(self, product_name: str, status: str):
        super().__init__(
            f"{product_name} is not available for sale (status: {status})",
            {"product_name": product_name, "status": status},
        )


# -- internal --

class ConcurrentUpdateError(PosError):
    """A compare-and-set lost its race; the whole operation is retried."""

    code = "CONCURRENT_UPDATE"


class LedgerImmutableError(PosError):
    code = "LEDGER_IMMUTABLE"
