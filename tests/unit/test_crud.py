import pytest
from sqlalchemy.exc import OperationalError

from carelink.db import crud
from carelink.models import ServiceOrder
from carelink.services.errors import PersistenceError
from tests.factories import make_order


async def test_create_and_get_order(db, patient):
    order = await make_order(db, patient.id, service_category="Home Nursing")
    assert order.id is not None
    assert len(order.id) == 32
    assert order.status == "pending"
    assert order.quoted_currency == "INR"

    fetched = await crud.get_service_order(db, order.id)
    assert fetched is not None
    assert fetched.service_category == "Home Nursing"


async def test_scoped_get_hides_other_patients_orders(db, patient):
    order = await make_order(db, patient.id)
    assert await crud.get_service_order(db, order.id, patient.id) is not None
    assert await crud.get_service_order(db, order.id, "someone-else") is None


async def test_list_order_ids_newest_first(db, patient):
    first = await make_order(db, patient.id)
    second = await make_order(db, patient.id)
    await make_order(db, "other-patient")
    ids = await crud.list_order_ids(db, patient.id)
    assert set(ids) == {first.id, second.id}
    assert len(await crud.list_order_ids(db)) == 3


async def test_conditional_update_applies_only_when_guard_matches(db, patient):
    order = await make_order(db, patient.id)

    missed = await crud.conditional_update(
        db, order.id, {"status": "completed"}, ServiceOrder.status == "accepted",
    )
    assert missed is None

    hit = await crud.conditional_update(
        db, order.id, {"status": "declined"}, ServiceOrder.status == "pending",
    )
    assert hit is not None
    assert hit.status == "declined"


async def test_list_orders_for_partner(db, patient, partner):
    await make_order(db, patient.id, assigned_engineer_id=partner.id, status="accepted")
    await make_order(db, patient.id)
    orders = await crud.list_orders_for_partner(db, partner.id, limit=10)
    assert len(orders) == 1
    assert orders[0].assigned_engineer_id == partner.id


async def test_count_completed_for_partner(db, patient, partner):
    await make_order(db, patient.id, assigned_engineer_id=partner.id, status="completed")
    await make_order(db, patient.id, assigned_engineer_id=partner.id, status="completed", partner_rating=4)
    await make_order(db, patient.id, assigned_engineer_id=partner.id, status="accepted")
    assert await crud.count_completed_for_partner(db, partner.id) == 2
    assert await crud.count_completed_for_partner(db, "nobody") == 0


async def test_store_failure_raises_persistence_error_and_changes_nothing(db, patient, monkeypatch):
    order = await make_order(db, patient.id)

    async def broken_execute(*args, **kwargs):
        raise OperationalError("UPDATE service_orders", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "execute", broken_execute)
    with pytest.raises(PersistenceError) as exc:
        await crud.conditional_update(
            db, order.id, {"status": "declined"}, ServiceOrder.status == "pending",
        )
    assert exc.value.status_code == 500
    assert "database is locked" in exc.value.extra["details"]

    monkeypatch.undo()
    reloaded = await crud.get_service_order(db, order.id)
    assert reloaded.status == "pending"
    assert reloaded.declined_at is None
