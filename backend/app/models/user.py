"""
User database model.

Backs both actor roles: administrators and the drivers linked to them.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from backend.app.db.session import Base, new_id
from backend.app.models.enums import UserRole


class User(Base):
    """
    User model for authentication and the admin/driver hierarchy.

    A DRIVER always carries the id of the ADMIN that invited it;
    an ADMIN never does.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(150), nullable=False)
    phone = Column(String(30), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    trial_ends_at = Column(DateTime(timezone=True), nullable=True)

    role = Column(Enum(UserRole), default=UserRole.DRIVER, nullable=False)

    # Hierarchy - Driver belongs to Admin
    admin_id = Column(String(36), ForeignKey('users.id'), index=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
