"""
Per-account settings maps.

CommissionSettings is keyed by admin, DriverPermissions by driver. Absent
rows mean "use the defaults"; the store fills them in on read.
"""

from sqlalchemy import Column, String, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from backend.app.db.session import Base


class CommissionSettings(Base):
    """Commission percentage applied to new freights of an admin."""
    __tablename__ = "commission_settings"

    admin_id = Column(String(36), ForeignKey('users.id', ondelete="CASCADE"), primary_key=True)
    commission_percentage = Column(Float, nullable=False)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<CommissionSettings(admin_id={self.admin_id}, pct={self.commission_percentage})>"


class DriverPermissions(Base):
    """Which optional record kinds a driver may view."""
    __tablename__ = "driver_permissions"

    driver_id = Column(String(36), ForeignKey('users.id', ondelete="CASCADE"), primary_key=True)
    view_tire_changes = Column(Boolean, default=True, nullable=False)
    view_fuelings = Column(Boolean, default=True, nullable=False)
    view_expenses = Column(Boolean, default=True, nullable=False)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<DriverPermissions(driver_id={self.driver_id})>"
