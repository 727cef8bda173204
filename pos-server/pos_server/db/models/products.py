# pos_server/db/models/products.py
from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from pos_server.db.base import Base


class Product(Base):
    """A sellable item in the store catalog together with its on-hand stock.

    ``stock`` is only ever lowered by the settlement engine through a
    conditional update; the check constraint keeps it non-negative even if
    some other writer gets it wrong.
    """

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String, nullable=False)
    barcode = Column(String, nullable=True, unique=True)
    category = Column(String, nullable=True, index=True)
    description = Column(Text, nullable=True)

    price = Column(Numeric(18, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )

    def summary(self) -> dict:
        return {"id": self.id, "name": self.name, "barcode": self.barcode}


# case-insensitive name uniqueness
Index("uq_products_name_lower", func.lower(Product.name), unique=True)
