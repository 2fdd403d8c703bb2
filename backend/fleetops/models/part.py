from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, Text, CheckConstraint
from sqlalchemy.sql import func
from fleetops.core.database import Base


class Part(Base):
    __tablename__ = "parts"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_parts_stock_non_negative"),
        CheckConstraint("unit_price >= 0", name="ck_parts_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text)

    # Current catalog price; usages freeze their own copy
    unit_price = Column(Numeric(12, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)

    is_archived = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
