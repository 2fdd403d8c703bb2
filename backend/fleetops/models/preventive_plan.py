from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Text, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetops.core.database import Base
from fleetops.models.enums import IntervalKind


class PreventivePlan(Base):
    __tablename__ = "preventive_plans"
    __table_args__ = (
        CheckConstraint("interval_value >= 1", name="ck_preventive_plans_interval_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), unique=True, nullable=False)

    maintenance_type = Column(String(100), nullable=False)  # oil change, brake inspection, ...
    description = Column(Text)

    interval_kind = Column(
        Enum(IntervalKind, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    interval_value = Column(Integer, nullable=False)  # km or days depending on kind

    # Exactly one populated, matching interval_kind
    next_due_km = Column(Integer)
    next_due_date = Column(Date)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    vehicle = relationship("Vehicle", back_populates="preventive_plan")
