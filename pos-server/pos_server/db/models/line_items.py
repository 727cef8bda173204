from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, Numeric, Uuid

from pos_server.db.base import Base


class LineItem(Base):
    """One cart line of a settled transaction.

    ``unit_price`` and ``subtotal`` are captured at the time of sale; the
    product row may be repriced later without touching the ledger.
    """

    __tablename__ = "transaction_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(Uuid(as_uuid=True), ForeignKey("transactions.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    line_number = Column(Integer, nullable=False)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(18, 2), nullable=False)
    subtotal = Column(Numeric(18, 2), nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_transaction_items_quantity_positive"),
        Index("ix_transaction_items_transaction_line", "transaction_id", "line_number", unique=True),
    )
