from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetops.core.database import Base
from fleetops.models.enums import VehicleStatus


class Vehicle(Base):
    __tablename__ = "vehicles"
    __table_args__ = (
        CheckConstraint("odometer_km >= 0", name="ck_vehicles_odometer_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    plate = Column(String(10), unique=True, index=True, nullable=False)
    make = Column(String(50), nullable=False)
    model = Column(String(50), nullable=False)
    year = Column(Integer, nullable=False)

    # Only ever increases
    odometer_km = Column(Integer, nullable=False, default=0)

    status = Column(
        Enum(VehicleStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=VehicleStatus.ACTIVE,
    )
    last_service_date = Column(Date)

    # Tombstone: archived vehicles are kept for history but excluded from operations
    is_archived = Column(Boolean, nullable=False, default=False)
    archived_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    preventive_plan = relationship("PreventivePlan", back_populates="vehicle", uselist=False)
