# pos_server/domain/checkout/schemas.py
import enum
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from typing import List, Optional


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE = "mobile"
    VOUCHER = "voucher"
    OTHER = "other"


class CartLine(BaseModel):
    # bounded to what the integer columns can store
    product_id: int = Field(gt=0, le=2**63 - 1)
    quantity: int = Field(gt=0, le=2**31 - 1)
    unit_price: Decimal = Field(ge=0, max_digits=18, decimal_places=2)


class SettlementRequest(BaseModel):
    items: List[CartLine]
    # validated by the engine so an unknown method maps to InvalidPaymentMethod
    payment_method: str
    discount_amount: Decimal = Decimal("0")
    customer_email: Optional[str] = None


class SettledLine(BaseModel):
    line_number: int
    product_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class SettlementResult(BaseModel):
    transaction_id: UUID
    payment_method: PaymentMethod
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    currency: str
    points_awarded: int = 0
    lines: List[SettledLine]


class LineItemOut(BaseModel):
    line_number: int
    product_id: int
    name: str
    barcode: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class TransactionOut(BaseModel):
    id: UUID
    cashier_id: int
    cashier_name: Optional[str] = None
    payment_method: str
    customer_email: Optional[str] = None
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    currency: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionDetailOut(TransactionOut):
    items: List[LineItemOut] = []
