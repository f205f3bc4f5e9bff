"""
Expense database model.
"""

from sqlalchemy import Column, String, Float, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from backend.app.db.session import Base, new_id


class Expense(Base):
    """Miscellaneous cost recorded against a cycle (tolls, meals, repairs)."""
    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=new_id)
    cycle_id = Column(String(36), ForeignKey('cycles.id', ondelete="CASCADE"), nullable=False, index=True)

    date = Column(Date, nullable=False)
    description = Column(String(255), nullable=False)
    value = Column(Float, nullable=False)
    receipt_photo_ref = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Expense(id={self.id}, cycle_id={self.cycle_id}, value={self.value})>"
