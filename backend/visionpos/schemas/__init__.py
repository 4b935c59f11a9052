from visionpos.schemas.product import (
    Product, ProductCreate, ProductUpdate, ProductResponse,
)
from visionpos.schemas.user import (
    User, UserCreate, UserUpdate, UserResponse,
)
from visionpos.schemas.transaction import (
    LineSnapshot, PaymentEntry, RecognitionMethod, TransactionRecord, TransactionStatus,
)
from visionpos.schemas.cart import CartLine, CartSummary
from visionpos.schemas.auth import Session
from visionpos.schemas.envelope import Envelope

__all__ = [
    "Product", "ProductCreate", "ProductUpdate", "ProductResponse",
    "User", "UserCreate", "UserUpdate", "UserResponse",
    "LineSnapshot", "PaymentEntry", "RecognitionMethod", "TransactionRecord", "TransactionStatus",
    "CartLine", "CartSummary",
    "Session",
    "Envelope",
]
