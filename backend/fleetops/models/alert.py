from sqlalchemy import Column, Integer, DateTime, Boolean, Text, Enum, ForeignKey
from sqlalchemy.orm import relationship
from fleetops.core.database import Base
from fleetops.models.enums import AlertKind


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)

    kind = Column(
        Enum(AlertKind, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    message = Column(Text, nullable=False)
    generated_at = Column(DateTime(timezone=True), nullable=False)

    # Set once the batch containing this alert was dispatched
    notified = Column(Boolean, nullable=False, default=False, index=True)

    vehicle = relationship("Vehicle")
