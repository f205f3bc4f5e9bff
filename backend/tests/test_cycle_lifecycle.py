"""
Cycle lifecycle tests.

Exercises the cycle service against the in-memory database: opening,
editing, closing and deleting cycles, and recording freights, fuelings
and expenses under the access rules.
"""

import pytest
from sqlalchemy.exc import OperationalError
from backend.app.core.exceptions import (
    ForbiddenError,
    InputValidationError,
    InvalidReferenceError,
    ResourceNotFoundError,
    StorageError,
)
from backend.app.domain.cycles.cycle_service import FreightPhotos, FuelingPhotos
from backend.app.models.cycle_enums import CycleStatus
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.services.blob_store import BlobStore
from backend.app.store.entity_store import EntityKind


FREIGHT = {"departure_weight": 30000, "rate_per_ton": 200, "origin": "Sorriso", "destination": "Santos"}
FUELING = {"station": "Posto BR", "arla_liters": 20, "arla_price_per_liter": 4.5,
           "diesel_liters": 300, "diesel_price_per_liter": 5.89}
EXPENSE = {"date": "2024-03-02", "description": "Toll", "value": 85.4}


def freight_photos(photo, arrival=False):
    return FreightPhotos(departure=photo("scale.jpg"), arrival=photo("arrival.jpg") if arrival else None)


def fueling_photos(photo):
    return FuelingPhotos(odometer=photo("odo.jpg"), receipt=photo("receipt.png"))


# Opening cycles

async def test_create_cycle_success(open_cycle, admin, driver):
    assert open_cycle.status == CycleStatus.OPEN
    assert open_cycle.admin_id == admin.id
    assert open_cycle.driver_id == driver.id
    assert open_cycle.closed_at is None
    assert open_cycle.departure_photo_ref.startswith(f"/media/cycles/{admin.id}/{open_cycle.id}/departure-")
    assert open_cycle.departure_photo_ref.endswith(".jpg")


async def test_create_cycle_requires_departure_photo(cycle_service, store, admin, cycle_payload, photo):
    with pytest.raises(InputValidationError) as exc_info:
        await cycle_service.create_cycle(admin, cycle_payload, None)
    assert exc_info.value.details["field"] == "departure_photo"

    with pytest.raises(InputValidationError):
        await cycle_service.create_cycle(admin, cycle_payload, photo(content=b""))

    assert await store.list_cycles(admin.id) == []


async def test_create_cycle_rejects_missing_fields(cycle_service, admin, cycle_payload, photo):
    del cycle_payload["departure_odometer"]
    with pytest.raises(InputValidationError) as exc_info:
        await cycle_service.create_cycle(admin, cycle_payload, photo())
    assert "departure_odometer" in exc_info.value.message


async def test_driver_cannot_open_cycle(cycle_service, driver, cycle_payload, photo):
    with pytest.raises(ForbiddenError):
        await cycle_service.create_cycle(driver, cycle_payload, photo())


async def test_create_cycle_rejects_foreign_driver(cycle_service, db_session, admin, other_admin_user, cycle_payload, photo):
    outsider = User(
        email="outsider@fleet.com", name="Outsider", hashed_password="x",
        role=UserRole.DRIVER, admin_id=other_admin_user.id,
    )
    db_session.add(outsider)
    await db_session.commit()

    cycle_payload["driver_id"] = outsider.id
    with pytest.raises(InvalidReferenceError):
        await cycle_service.create_cycle(admin, cycle_payload, photo())


async def test_create_cycle_rejects_foreign_vehicle(cycle_service, other_admin, cycle_payload, photo):
    with pytest.raises(InvalidReferenceError):
        await cycle_service.create_cycle(other_admin, cycle_payload, photo())


async def test_upload_failure_writes_nothing(cycle_service, store, blob_store, admin, cycle_payload, photo, mocker):
    mocker.patch.object(blob_store, "upload", side_effect=StorageError("Could not store uploaded file"))

    with pytest.raises(StorageError):
        await cycle_service.create_cycle(admin, cycle_payload, photo())

    assert await store.list_cycles(admin.id) == []


def test_blob_store_requires_upload(blob_store):
    class NoUpload(BlobStore):
        pass

    with pytest.raises(TypeError):
        NoUpload()
    assert isinstance(blob_store, BlobStore)


# Viewing and editing

async def test_cycle_visibility(cycle_service, open_cycle, admin, driver, second_driver, other_admin):
    assert (await cycle_service.get_cycle(driver, open_cycle.id)).id == open_cycle.id
    assert [c.id for c in await cycle_service.list_cycles(admin)] == [open_cycle.id]
    assert [c.id for c in await cycle_service.list_cycles(driver)] == [open_cycle.id]
    assert await cycle_service.list_cycles(second_driver) == []

    with pytest.raises(ForbiddenError):
        await cycle_service.get_cycle(second_driver, open_cycle.id)
    with pytest.raises(ForbiddenError):
        await cycle_service.get_cycle(other_admin, open_cycle.id)


async def test_unknown_cycle_is_not_found(cycle_service, admin):
    with pytest.raises(ResourceNotFoundError):
        await cycle_service.get_cycle(admin, "missing-id")


async def test_driver_updates_open_cycle(cycle_service, open_cycle, driver):
    updated = await cycle_service.update_cycle(driver, open_cycle.id, {"description": "Corn load"})
    assert updated.description == "Corn load"


async def test_update_keeps_photo_unless_replaced(cycle_service, open_cycle, admin, photo):
    original_ref = open_cycle.departure_photo_ref

    updated = await cycle_service.update_cycle(admin, open_cycle.id, {"departure_odometer": 120600})
    assert updated.departure_photo_ref == original_ref

    updated = await cycle_service.update_cycle(admin, open_cycle.id, {}, photo("new.png"))
    assert updated.departure_photo_ref != original_ref
    assert updated.departure_photo_ref.endswith(".png")


async def test_status_cannot_be_patched(cycle_service, open_cycle, admin):
    with pytest.raises(InputValidationError):
        await cycle_service.update_cycle(admin, open_cycle.id, {"status": "CLOSED"})


async def test_update_cannot_clear_required_fields(cycle_service, open_cycle, admin):
    with pytest.raises(InputValidationError):
        await cycle_service.update_cycle(admin, open_cycle.id, {"description": None})


async def test_reassign_to_unlinked_driver_fails(cycle_service, open_cycle, admin, other_admin_user):
    with pytest.raises(InvalidReferenceError):
        await cycle_service.update_cycle(admin, open_cycle.id, {"driver_id": other_admin_user.id})


# Closing

async def test_close_cycle(cycle_service, open_cycle, admin):
    closed = await cycle_service.close_cycle(admin, open_cycle.id)
    assert closed.status == CycleStatus.CLOSED
    assert closed.closed_at is not None


async def test_close_twice_is_rejected(cycle_service, open_cycle, admin):
    await cycle_service.close_cycle(admin, open_cycle.id)
    with pytest.raises(ForbiddenError):
        await cycle_service.close_cycle(admin, open_cycle.id)


async def test_only_owner_can_close(cycle_service, open_cycle, driver, other_admin):
    with pytest.raises(ForbiddenError):
        await cycle_service.close_cycle(driver, open_cycle.id)
    with pytest.raises(ForbiddenError):
        await cycle_service.close_cycle(other_admin, open_cycle.id)


CLOSED_CYCLE_DRIVER_MUTATIONS = {
    "update_cycle": lambda svc, d, c, r, p: svc.update_cycle(d, c, {"description": "late edit"}),
    "add_freight": lambda svc, d, c, r, p: svc.add_freight(d, c, FREIGHT, freight_photos(p)),
    "update_freight": lambda svc, d, c, r, p: svc.update_freight(d, r["freight"], {"loss_value": 10}),
    "delete_freight": lambda svc, d, c, r, p: svc.delete_freight(d, r["freight"]),
    "add_fueling": lambda svc, d, c, r, p: svc.add_fueling(d, c, FUELING, fueling_photos(p)),
    "update_fueling": lambda svc, d, c, r, p: svc.update_fueling(d, r["fueling"], {"station": "Posto Shell"}),
    "delete_fueling": lambda svc, d, c, r, p: svc.delete_fueling(d, r["fueling"]),
    "add_expense": lambda svc, d, c, r, p: svc.add_expense(d, c, EXPENSE),
    "update_expense": lambda svc, d, c, r, p: svc.update_expense(d, r["expense"], {"value": 1}),
    "delete_expense": lambda svc, d, c, r, p: svc.delete_expense(d, r["expense"]),
}


@pytest.mark.parametrize("operation", sorted(CLOSED_CYCLE_DRIVER_MUTATIONS))
async def test_closed_cycle_is_read_only_for_driver(cycle_service, store, open_cycle, admin, driver, photo, operation):
    records = {
        "freight": (await cycle_service.add_freight(driver, open_cycle.id, FREIGHT, freight_photos(photo))).id,
        "fueling": (await cycle_service.add_fueling(driver, open_cycle.id, FUELING, fueling_photos(photo))).id,
        "expense": (await cycle_service.add_expense(driver, open_cycle.id, EXPENSE)).id,
    }
    await cycle_service.close_cycle(admin, open_cycle.id)

    with pytest.raises(ForbiddenError):
        await CLOSED_CYCLE_DRIVER_MUTATIONS[operation](cycle_service, driver, open_cycle.id, records, photo)

    cycle = await store.get(EntityKind.CYCLE, open_cycle.id)
    assert cycle.description == "Soy harvest, Sorriso to Santos"
    freights = await store.list(EntityKind.FREIGHT, open_cycle.id)
    assert [f.id for f in freights] == [records["freight"]]
    assert freights[0].loss_value == 0
    fuelings = await store.list(EntityKind.FUELING, open_cycle.id)
    assert [f.station for f in fuelings] == ["Posto BR"]
    expenses = await store.list(EntityKind.EXPENSE, open_cycle.id)
    assert [e.value for e in expenses] == [85.4]
    # Still readable
    assert len(await cycle_service.list_freights(driver, open_cycle.id)) == 1


async def test_admin_edits_closed_cycle(cycle_service, open_cycle, admin, photo):
    await cycle_service.close_cycle(admin, open_cycle.id)
    expense = await cycle_service.add_expense(admin, open_cycle.id, EXPENSE)
    assert expense.value == 85.4


# Freights

async def test_freight_value_and_commission(cycle_service, open_cycle, driver, photo):
    freight = await cycle_service.add_freight(driver, open_cycle.id, FREIGHT, freight_photos(photo))

    assert freight.value == 6000.0
    assert freight.commission_percent == 10.0
    assert freight.commission_value == 600.0
    assert freight.loss_value == 0.0
    assert freight.arrival_photo_ref is None


async def test_freight_requires_departure_photo(cycle_service, open_cycle, admin):
    with pytest.raises(InputValidationError) as exc_info:
        await cycle_service.add_freight(admin, open_cycle.id, FREIGHT, FreightPhotos())
    assert exc_info.value.details["field"] == "departure_photo"


async def test_arrival_weight_needs_arrival_photo(cycle_service, store, open_cycle, admin, photo):
    payload = dict(FREIGHT, arrival_weight=29850)

    with pytest.raises(InputValidationError) as exc_info:
        await cycle_service.add_freight(admin, open_cycle.id, payload, freight_photos(photo))
    assert exc_info.value.details["field"] == "arrival_photo"
    assert await store.list(EntityKind.FREIGHT, open_cycle.id) == []

    freight = await cycle_service.add_freight(admin, open_cycle.id, payload, freight_photos(photo, arrival=True))
    assert freight.arrival_weight == 29850
    assert freight.arrival_photo_ref is not None


async def test_arrival_weight_on_update(cycle_service, open_cycle, admin, photo):
    freight = await cycle_service.add_freight(admin, open_cycle.id, FREIGHT, freight_photos(photo))

    with pytest.raises(InputValidationError):
        await cycle_service.update_freight(admin, freight.id, {"arrival_weight": 29900})

    updated = await cycle_service.update_freight(
        admin, freight.id, {"arrival_weight": 29900}, FreightPhotos(arrival=photo("arrival.jpg"))
    )
    assert updated.arrival_weight == 29900

    # Photo already on record
    updated = await cycle_service.update_freight(admin, freight.id, {"arrival_weight": 29950})
    assert updated.arrival_weight == 29950


async def test_commission_is_frozen_at_creation(cycle_service, store, open_cycle, admin, photo):
    freight = await cycle_service.add_freight(admin, open_cycle.id, FREIGHT, freight_photos(photo))
    await store.save_commission_settings(admin.id, 20)

    updated = await cycle_service.update_freight(admin, freight.id, {"departure_weight": 40000})
    assert updated.value == 8000.0
    assert updated.commission_percent == 10.0
    assert updated.commission_value == 800.0

    newer = await cycle_service.add_freight(admin, open_cycle.id, FREIGHT, freight_photos(photo))
    assert newer.commission_percent == 20.0
    assert newer.commission_value == 1200.0


async def test_derived_freight_fields_cannot_be_patched(cycle_service, open_cycle, admin, photo):
    freight = await cycle_service.add_freight(admin, open_cycle.id, FREIGHT, freight_photos(photo))
    with pytest.raises(InputValidationError):
        await cycle_service.update_freight(admin, freight.id, {"value": 1})


async def test_unassigned_driver_cannot_add_freight(cycle_service, store, open_cycle, second_driver, photo):
    with pytest.raises(ForbiddenError):
        await cycle_service.add_freight(second_driver, open_cycle.id, FREIGHT, freight_photos(photo))
    assert await store.list(EntityKind.FREIGHT, open_cycle.id) == []


async def test_denied_before_validation(cycle_service, open_cycle, second_driver):
    # Garbage payload still yields ForbiddenError
    with pytest.raises(ForbiddenError):
        await cycle_service.add_freight(second_driver, open_cycle.id, {"departure_weight": "heavy"})


# Fuelings and expenses

async def test_fueling_total(cycle_service, open_cycle, driver, photo):
    fueling = await cycle_service.add_fueling(driver, open_cycle.id, FUELING, fueling_photos(photo))
    assert fueling.total == 1857.0

    updated = await cycle_service.update_fueling(driver, fueling.id, {"diesel_liters": 100})
    assert updated.total == 679.0
    assert updated.receipt_photo_ref == fueling.receipt_photo_ref


async def test_fueling_requires_both_photos(cycle_service, open_cycle, driver, photo):
    with pytest.raises(InputValidationError) as exc_info:
        await cycle_service.add_fueling(driver, open_cycle.id, FUELING, FuelingPhotos(odometer=photo()))
    assert exc_info.value.details["field"] == "receipt_photo"

    with pytest.raises(InputValidationError) as exc_info:
        await cycle_service.add_fueling(driver, open_cycle.id, FUELING, FuelingPhotos(receipt=photo()))
    assert exc_info.value.details["field"] == "odometer_photo"


async def test_expense_receipt_is_optional(cycle_service, open_cycle, driver, photo):
    plain = await cycle_service.add_expense(driver, open_cycle.id, EXPENSE)
    assert plain.receipt_photo_ref is None

    with_receipt = await cycle_service.add_expense(driver, open_cycle.id, EXPENSE, photo("toll.pdf"))
    assert with_receipt.receipt_photo_ref.endswith(".pdf")

    updated = await cycle_service.update_expense(driver, plain.id, {"value": 90})
    assert updated.value == 90


async def test_driver_listing_respects_permissions(cycle_service, store, open_cycle, admin, driver, photo):
    await cycle_service.add_fueling(admin, open_cycle.id, FUELING, fueling_photos(photo))
    await cycle_service.add_expense(admin, open_cycle.id, EXPENSE)

    assert len(await cycle_service.list_fuelings(driver, open_cycle.id)) == 1

    await store.save_driver_permissions(driver.id, {"view_fuelings": False})

    with pytest.raises(ForbiddenError):
        await cycle_service.list_fuelings(driver, open_cycle.id)
    assert len(await cycle_service.list_expenses(driver, open_cycle.id)) == 1
    assert len(await cycle_service.list_fuelings(admin, open_cycle.id)) == 1


async def test_delete_child_records(cycle_service, store, open_cycle, driver, photo):
    fueling = await cycle_service.add_fueling(driver, open_cycle.id, FUELING, fueling_photos(photo))
    expense = await cycle_service.add_expense(driver, open_cycle.id, EXPENSE)

    await cycle_service.delete_fueling(driver, fueling.id)
    await cycle_service.delete_expense(driver, expense.id)

    assert await store.list(EntityKind.FUELING, open_cycle.id) == []
    assert await store.list(EntityKind.EXPENSE, open_cycle.id) == []

    with pytest.raises(ResourceNotFoundError):
        await cycle_service.delete_expense(driver, expense.id)


# Deletion

async def test_delete_cycle_cascades(cycle_service, store, open_cycle, admin, driver, photo):
    await cycle_service.add_freight(driver, open_cycle.id, FREIGHT, freight_photos(photo))
    await cycle_service.add_freight(driver, open_cycle.id, FREIGHT, freight_photos(photo))
    await cycle_service.add_fueling(driver, open_cycle.id, FUELING, fueling_photos(photo))
    await cycle_service.add_expense(driver, open_cycle.id, EXPENSE)

    await cycle_service.delete_cycle(admin, open_cycle.id)

    assert await store.get(EntityKind.CYCLE, open_cycle.id) is None
    for kind in (EntityKind.FREIGHT, EntityKind.FUELING, EntityKind.EXPENSE):
        assert await store.list(kind, open_cycle.id) == []


async def test_failed_cycle_delete_keeps_children(cycle_service, store, open_cycle, admin, driver, photo, mocker):
    await cycle_service.add_freight(driver, open_cycle.id, FREIGHT, freight_photos(photo))
    await cycle_service.add_expense(driver, open_cycle.id, EXPENSE)
    original = store.db.execute

    async def failing(statement, *args, **kwargs):
        if str(statement).startswith("DELETE FROM cycles"):
            raise OperationalError("DELETE FROM cycles", {}, Exception("disk I/O error"))
        return await original(statement, *args, **kwargs)

    mocker.patch.object(store.db, "execute", side_effect=failing)

    with pytest.raises(StorageError) as exc_info:
        await cycle_service.delete_cycle(admin, open_cycle.id)

    assert exc_info.value.details["operation"] == "delete"
    assert await store.get(EntityKind.CYCLE, open_cycle.id) is not None
    assert len(await store.list(EntityKind.FREIGHT, open_cycle.id)) == 1
    assert len(await store.list(EntityKind.EXPENSE, open_cycle.id)) == 1


async def test_driver_cannot_delete_cycle(cycle_service, store, open_cycle, driver):
    with pytest.raises(ForbiddenError):
        await cycle_service.delete_cycle(driver, open_cycle.id)
    assert await store.get(EntityKind.CYCLE, open_cycle.id) is not None


async def test_two_freight_scenario(cycle_service, store, open_cycle, admin, driver, photo):
    from backend.app.domain.finance.calculator import aggregate_cycle

    for _ in range(2):
        await cycle_service.add_freight(
            driver, open_cycle.id, {"departure_weight": 20000, "rate_per_ton": 150}, freight_photos(photo)
        )

    totals = aggregate_cycle(
        await store.list(EntityKind.FREIGHT, open_cycle.id),
        await store.list(EntityKind.FUELING, open_cycle.id),
        await store.list(EntityKind.EXPENSE, open_cycle.id),
    )
    assert totals.freight_total == 6000.0
    assert totals.commission_total == 600.0
