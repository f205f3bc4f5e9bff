"""
Cycle database model.

A cycle is one truck/driver assignment, opened at a known odometer
reading. It is the aggregation root for freights, fuelings and expenses.
"""

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base, new_id
from backend.app.models.cycle_enums import CycleStatus


class Cycle(Base):
    """
    Cycle model.

    Follows a one-way workflow: OPEN -> CLOSED.
    departure_odometer and departure_photo_ref are mandatory, a cycle cannot
    exist without proof of its starting odometer.
    """
    __tablename__ = "cycles"

    id = Column(String(36), primary_key=True, default=new_id)

    # Ownership and assignment
    admin_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    driver_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    car_id = Column(String(36), ForeignKey('vehicles.id'), nullable=False, index=True)

    description = Column(String(255), nullable=False)
    departure_at = Column(DateTime(timezone=True), nullable=False, index=True)
    departure_odometer = Column(Float, nullable=False)
    departure_photo_ref = Column(String(500), nullable=False)

    # Status
    status = Column(Enum(CycleStatus), default=CycleStatus.OPEN, nullable=False, index=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Cycle(id={self.id}, admin_id={self.admin_id}, status='{self.status.value}')>"
