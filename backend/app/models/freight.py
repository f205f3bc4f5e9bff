"""
Freight database model.

One cargo-hauling transaction within a cycle.
"""

from sqlalchemy import Column, String, Float, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from backend.app.db.session import Base, new_id


class Freight(Base):
    """
    Freight model.

    value and commission_value are derived by the financial calculator.
    commission_percent is a snapshot of the admin's setting at creation time
    and is never refreshed afterwards.
    """
    __tablename__ = "freights"

    id = Column(String(36), primary_key=True, default=new_id)
    cycle_id = Column(String(36), ForeignKey('cycles.id', ondelete="CASCADE"), nullable=False, index=True)

    date = Column(Date, nullable=True)
    origin = Column(String(255), nullable=True)
    destination = Column(String(255), nullable=True)

    # Weights in kg, rate per metric ton
    departure_weight = Column(Float, nullable=False)
    arrival_weight = Column(Float, nullable=True)
    rate_per_ton = Column(Float, nullable=False)

    # Financials
    value = Column(Float, nullable=False)
    commission_percent = Column(Float, nullable=False)
    commission_value = Column(Float, nullable=False)
    loss_value = Column(Float, default=0.0, nullable=False)

    # Evidence
    departure_photo_ref = Column(String(500), nullable=False)
    arrival_photo_ref = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Freight(id={self.id}, cycle_id={self.cycle_id}, value={self.value})>"
