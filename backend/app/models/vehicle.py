"""
Vehicle database model.

Trucks registered by an Administrator and referenced by cycles and tire changes.
"""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.sql import func
from backend.app.db.session import Base, new_id


class Vehicle(Base):
    """
    Vehicle model.

    Owned exclusively by one Administrator.
    """
    __tablename__ = "vehicles"

    id = Column(String(36), primary_key=True, default=new_id)

    # Ownership - Vehicle belongs to Admin
    admin_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)

    # Identification
    plate = Column(String(20), nullable=False, index=True)
    brand = Column(String(100), nullable=False)
    model = Column(String(100), nullable=True)
    year = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.plate}', admin_id={self.admin_id})>"
