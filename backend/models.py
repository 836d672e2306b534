from sqlalchemy import BigInteger, CheckConstraint, Column, Date, DateTime, String, Text
from sqlalchemy.dialects import mysql
from database import Base
import uuid
from datetime import datetime, timezone


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        CheckConstraint("amount_cents >= 0", name="ck_expenses_amount_cents_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    idempotency_key = Column(String(255), unique=True, nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)   # Minor units, never float
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False)
    # MySQL DATETIME drops fractional seconds unless fsp is set
    created_at = Column(
        DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql"),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
