"""
Tire database models.

TireBrand is global reference data; TireChange is an append-only
history of replacements per vehicle.
"""

from sqlalchemy import Column, String, Float, Date, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base, new_id
from backend.app.models.cycle_enums import TirePosition


class TireBrand(Base):
    """Tire brand (not owner-scoped)."""
    __tablename__ = "tire_brands"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), unique=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<TireBrand(id={self.id}, name='{self.name}')>"


class TireChange(Base):
    """
    Tire replacement event.

    Read-only once written: there is no update path for this table.
    """
    __tablename__ = "tire_changes"

    id = Column(String(36), primary_key=True, default=new_id)
    admin_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    car_id = Column(String(36), ForeignKey('vehicles.id'), nullable=False, index=True)
    brand_id = Column(String(36), ForeignKey('tire_brands.id'), nullable=False)

    position = Column(Enum(TirePosition), nullable=False)
    odometer_at_change = Column(Float, nullable=False)
    change_date = Column(Date, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<TireChange(id={self.id}, car_id={self.car_id}, position='{self.position.value}')>"
