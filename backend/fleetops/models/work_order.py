from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Boolean, Text, Enum, ForeignKey, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetops.core.database import Base
from fleetops.models.enums import WorkOrderType, WorkOrderState


class WorkOrder(Base):
    __tablename__ = "work_orders"

    id = Column(Integer, primary_key=True, index=True)
    number = Column(String(20), unique=True, index=True, nullable=False)  # OT-YYYY-NNNNN
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)

    order_type = Column(
        Enum(WorkOrderType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    description = Column(Text, nullable=False)
    state = Column(
        Enum(WorkOrderState, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=WorkOrderState.PENDING,
    )
    technician_id = Column(Integer, ForeignKey("users.id"))
    notes = Column(Text)

    # Finalized at closure
    parts_cost = Column(Numeric(14, 2), nullable=False, default=0)
    labor_cost = Column(Numeric(14, 2), nullable=False, default=0)
    total_cost = Column(Numeric(14, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False)
    closed_at = Column(DateTime(timezone=True))
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    vehicle = relationship("Vehicle")
    technician = relationship("User")
    tasks = relationship(
        "Task",
        back_populates="work_order",
        order_by="Task.position",
        cascade="all, delete-orphan",
    )


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint("hours_worked >= 0", name="ck_tasks_hours_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    work_order_id = Column(Integer, ForeignKey("work_orders.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    description = Column(Text, nullable=False)
    technician_id = Column(Integer, ForeignKey("users.id"))
    hours_worked = Column(Numeric(6, 2), nullable=False, default=0)
    is_completed = Column(Boolean, nullable=False, default=False)
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    work_order = relationship("WorkOrder", back_populates="tasks")
    technician = relationship("User")
    part_usages = relationship("PartUsage", back_populates="task", cascade="all, delete-orphan")


class PartUsage(Base):
    __tablename__ = "part_usages"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_part_usages_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    part_id = Column(Integer, ForeignKey("parts.id"), nullable=False)
    quantity = Column(Integer, nullable=False)

    # Price at time of use, never recomputed from the catalog
    unit_price = Column(Numeric(12, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    task = relationship("Task", back_populates="part_usages")
    part = relationship("Part")
