from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Uuid
from sqlalchemy.sql import func
import uuid

from pos_server.db.base import Base


class Transaction(Base):
    """Ledger header for one settled sale.

    A transaction is written exactly once, in the same storage transaction as
    its line items and the stock decrements they caused, and is never updated
    afterwards. Totals are stored as computed at settlement time so reporting
    does not depend on the mutable catalog.
    """

    __tablename__ = "transactions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cashier_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    payment_method = Column(String, nullable=False)
    customer_email = Column(String, nullable=True)

    subtotal = Column(Numeric(18, 2), nullable=False)
    discount_amount = Column(Numeric(18, 2), nullable=False, default=0)
    total = Column(Numeric(18, 2), nullable=False)
    currency = Column(String, nullable=False, default="USD")

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_transactions_created_at", "created_at"),
        Index("ix_transactions_cashier_created", "cashier_id", "created_at"),
    )
