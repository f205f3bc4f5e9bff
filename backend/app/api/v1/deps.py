"""
Request-scoped collaborators for the v1 endpoints.

Builds the entity store and domain services on top of the per-request
database session, and converts multipart form parts into domain inputs.
"""

import json
from typing import Any, Dict, Optional

from fastapi import Depends, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import InputValidationError
from backend.app.db.session import get_db
from backend.app.domain.accounts.settings_service import SettingsService
from backend.app.domain.cycles.cycle_service import CycleService
from backend.app.domain.fleet.fleet_service import FleetService
from backend.app.services.blob_store import BlobStore, PhotoUpload, get_blob_store
from backend.app.services.dashboard import DashboardService
from backend.app.store.entity_store import EntityStore


def get_store(db: AsyncSession = Depends(get_db)) -> EntityStore:
    return EntityStore(db)


def get_cycle_service(
    store: EntityStore = Depends(get_store),
    blobs: BlobStore = Depends(get_blob_store),
) -> CycleService:
    return CycleService(store, blobs)


def get_fleet_service(store: EntityStore = Depends(get_store)) -> FleetService:
    return FleetService(store)


def get_settings_service(store: EntityStore = Depends(get_store)) -> SettingsService:
    return SettingsService(store)


def get_dashboard_service(store: EntityStore = Depends(get_store)) -> DashboardService:
    return DashboardService(store)


def parse_payload(raw: Optional[str]) -> Dict[str, Any]:
    """Decode the JSON `payload` form field sent next to photo files."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InputValidationError("payload must be a JSON object", details={"field": "payload"}) from exc
    if not isinstance(data, dict):
        raise InputValidationError("payload must be a JSON object", details={"field": "payload"})
    return data


async def read_photo(upload: Optional[UploadFile]) -> Optional[PhotoUpload]:
    """Read an optional uploaded file; a missing or empty part becomes None."""
    if upload is None:
        return None
    content = await upload.read()
    if not content:
        return None
    return PhotoUpload(
        filename=upload.filename or "upload",
        content=content,
        content_type=upload.content_type,
    )
