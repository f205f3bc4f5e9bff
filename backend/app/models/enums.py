"""
User roles enumeration.

Defines the role types for the freight cycle manager.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Runs the business; owns vehicles, cycles and settings
        DRIVER: Linked to exactly one ADMIN through an invitation
    """
    ADMIN = "ADMIN"
    DRIVER = "DRIVER"
