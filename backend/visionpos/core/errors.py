"""Domain error taxonomy.

Every failure the checkout engine or a route handler can report is a
``PosError`` carrying the envelope status it maps to. Handlers raise these;
the command dispatcher turns them into ``{success: false, status, message}``.
"""

from pydantic import ValidationError as PydanticValidationError


class PosError(Exception):
    status: int = 400
    code: str = "error"

    def __init__(self, message: str = "", status: int | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        if status is not None:
            self.status = status


# ── 400: input validation ──────────────────────────
class ValidationError(PosError):
    code = "validation_error"

    def __init__(self, errors: list[str] | str):
        self.errors = [errors] if isinstance(errors, str) else list(errors)
        super().__init__(", ".join(self.errors))

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationError":
        """List every violated rule from a pydantic error, one per field."""
        rules = []
        for err in exc.errors():
            loc = ".".join(str(part) for part in err["loc"])
            rules.append(f"{loc}: {err['msg']}" if loc else err["msg"])
        return cls(rules)


class InvalidQuantity(ValidationError):
    code = "invalid_quantity"


class InvalidDiscount(ValidationError):
    code = "invalid_discount"


class InvalidPayment(ValidationError):
    code = "invalid_payment"


class MissingEmployee(ValidationError):
    code = "missing_employee"


class MissingStore(ValidationError):
    code = "missing_store"


# ── 404 ────────────────────────────────────────────
class NotFoundError(PosError):
    status = 404
    code = "not_found"


class ProductNotFound(NotFoundError):
    code = "product_not_found"

    def __init__(self, product_id: str = ""):
        self.product_id = product_id
        super().__init__("Product not found")


class LineNotFound(NotFoundError):
    code = "line_not_found"

    def __init__(self, product_id: str = ""):
        self.product_id = product_id
        super().__init__("Item not found in cart")


# ── 401 / 403 ──────────────────────────────────────
class AuthError(PosError):
    code = "auth_error"


class Unauthenticated(AuthError):
    status = 401
    code = "unauthenticated"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class Forbidden(AuthError):
    status = 403
    code = "forbidden"

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message)


# ── 400: illegal state transitions ─────────────────
class StateConflictError(PosError):
    code = "state_conflict"


class AlreadyVoided(StateConflictError):
    code = "already_voided"

    def __init__(self, message: str = "Transaction is already voided"):
        super().__init__(message)


class EmptyCart(StateConflictError):
    code = "empty_cart"

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


# ── 400: resource shortfalls ───────────────────────
class ResourceError(PosError):
    code = "resource_error"


class InsufficientStock(ResourceError):
    code = "insufficient_stock"

    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product_id}. Available: {available}, requested: {requested}"
        )


class StockUnavailable(ResourceError):
    code = "stock_unavailable"

    def __init__(self, shortfalls: list[InsufficientStock]):
        self.shortfalls = shortfalls
        detail = "; ".join(s.message for s in shortfalls)
        super().__init__(f"Stock no longer available: {detail}")


class InsufficientPayment(ResourceError):
    code = "insufficient_payment"

    def __init__(self, paid, total):
        self.paid = paid
        self.total = total
        self.amount_due = total - paid
        super().__init__(f"Insufficient payment amount. Paid: {paid}, total: {total}")


# ── 500 ────────────────────────────────────────────
class InternalError(PosError):
    status = 500
    code = "internal_error"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
