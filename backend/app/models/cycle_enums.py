"""
Cycle-related enumerations.
"""

import enum


class CycleStatus(str, enum.Enum):
    """Cycle status enumeration. OPEN -> CLOSED is the only transition."""
    OPEN = "OPEN"  # In progress, driver may still record data
    CLOSED = "CLOSED"  # Reconciled by the admin, read-only for drivers


class TirePosition(str, enum.Enum):
    """Axle position of a replaced tire."""
    FRONT = "FRONT"
    TRACTION = "TRACTION"
    TRAILER = "TRAILER"


class RecordKind(str, enum.Enum):
    """Child-record kinds a driver's visibility flags refer to."""
    FREIGHTS = "FREIGHTS"
    FUELINGS = "FUELINGS"
    EXPENSES = "EXPENSES"
    TIRE_CHANGES = "TIRE_CHANGES"
