from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from pos_server.db.base import Base


class User(Base):
    """An operator (cashier or admin) that transactions are recorded against.

    Credentials live with the external auth service; this row only gives the
    ledger something to reference.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, nullable=False, unique=True)
    role = Column(String, nullable=False, default="cashier")

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
