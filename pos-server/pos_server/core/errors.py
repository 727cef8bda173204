"""Domain errors raised by the settlement engine and catalog services.

Settlement errors fall into three groups that callers treat differently:

* validation errors (``EmptyCart``, ``InvalidPaymentMethod``,
  ``InvalidDiscount``, ``InvalidAmount``) are raised before the store is touched; fix the input
  and retry.
* business-rule errors (``ProductNotFound``, ``InsufficientStock``,
  ``PriceMismatch``) are raised from inside the storage transaction, which is
  rolled back; the cart must be re-checked.
* ``PersistenceFailure`` means the store could not commit; nothing was
  written and the caller may retry later.
"""
from decimal import Decimal
from typing import Any, Dict, Optional


class POSError(Exception):
    code = "pos_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> Dict[str, Any]:
        return {}


class NotFoundError(POSError):
    code = "not_found"


class BusinessError(POSError):
    code = "business_rule_violation"


class SettlementError(POSError):
    code = "settlement_error"


# -- validation ---------------------------------------------------------------


class SettlementValidationError(SettlementError):
    code = "invalid_request"


class EmptyCart(SettlementValidationError):
    code = "empty_cart"

    def __init__(self) -> None:
        super().__init__("Cart has no items")


class InvalidPaymentMethod(SettlementValidationError):
    code = "invalid_payment_method"

    def __init__(self, method: Any):
        super().__init__(f"Unrecognized payment method: {method!r}")
        self.method = method

    def details(self) -> Dict[str, Any]:
        return {"payment_method": str(self.method)}


class InvalidDiscount(SettlementValidationError):
    code = "invalid_discount"

    def __init__(self, discount: Decimal, subtotal: Decimal):
        if discount < 0:
            message = "Discount cannot be negative"
        else:
            message = f"Discount {discount} exceeds subtotal {subtotal}"
        super().__init__(message)
        self.discount = discount
        self.subtotal = subtotal

    def details(self) -> Dict[str, Any]:
        return {"discount_amount": str(self.discount), "subtotal": str(self.subtotal)}


class InvalidAmount(SettlementValidationError):
    code = "invalid_amount"

    def __init__(self) -> None:
        super().__init__("Cart amounts are too large to settle")


# -- business rules -----------------------------------------------------------


class ProductNotFound(SettlementError, NotFoundError):
    code = "product_not_found"

    def __init__(self, product_id: int):
        super().__init__(f"Product not found (ID {product_id})")
        self.product_id = product_id

    def details(self) -> Dict[str, Any]:
        return {"product_id": self.product_id}


class InsufficientStock(SettlementError):
    code = "insufficient_stock"

    def __init__(
        self,
        product_id: int,
        requested: int,
        available: Optional[int] = None,
        name: Optional[str] = None,
    ):
        label = name or f"product ID {product_id}"
        message = f"Insufficient stock for {label}"
        if available is not None:
            message += f". Available: {available}"
        super().__init__(message)
        self.product_id = product_id
        self.requested = requested
        self.available = available

    def details(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "requested": self.requested,
            "available": self.available,
        }


class PriceMismatch(SettlementError):
    code = "price_mismatch"

    def __init__(self, product_id: int, submitted: Decimal, current: Decimal):
        super().__init__(
            f"Price for product ID {product_id} changed: submitted {submitted}, current {current}"
        )
        self.product_id = product_id
        self.submitted = submitted
        self.current = current

    def details(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "submitted_price": str(self.submitted),
            "current_price": str(self.current),
        }


# -- infrastructure -----------------------------------------------------------


class PersistenceFailure(SettlementError):
    code = "persistence_failure"


# -- catalog management -------------------------------------------------------


class DuplicateProduct(BusinessError):
    code = "duplicate_product"

    def __init__(self, message: str, duplicate_type: str, existing: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.duplicate_type = duplicate_type
        self.existing = existing

    def details(self) -> Dict[str, Any]:
        return {"duplicate_type": self.duplicate_type, "existing_product": self.existing}
