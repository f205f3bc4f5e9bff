"""
Fueling database model.

One fuel purchase (diesel and/or ARLA) within a cycle.
"""

from sqlalchemy import Column, String, Float, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from backend.app.db.session import Base, new_id


class Fueling(Base):
    """Fueling model. total is derived from both fuel lines."""
    __tablename__ = "fuelings"

    id = Column(String(36), primary_key=True, default=new_id)
    cycle_id = Column(String(36), ForeignKey('cycles.id', ondelete="CASCADE"), nullable=False, index=True)

    date = Column(Date, nullable=True)
    station = Column(String(255), nullable=True)
    odometer = Column(Float, nullable=True)

    arla_liters = Column(Float, default=0.0, nullable=False)
    arla_price_per_liter = Column(Float, default=0.0, nullable=False)
    diesel_liters = Column(Float, default=0.0, nullable=False)
    diesel_price_per_liter = Column(Float, default=0.0, nullable=False)
    total = Column(Float, nullable=False)

    odometer_photo_ref = Column(String(500), nullable=False)
    receipt_photo_ref = Column(String(500), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Fueling(id={self.id}, cycle_id={self.cycle_id}, total={self.total})>"
