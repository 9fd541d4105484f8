import asyncio
import json
from decimal import Decimal

import pytest

from app.records.domain.errors import PersistenceError
from app.records.domain.models import Create, Update


def run(coro):
    return asyncio.run(coro)


def customer_fields(name="Meera Iyer", phone="98450 12345"):
    return {"name": name, "email": "meera@example.com", "phone": phone, "address": "Indiranagar"}


def test_create_then_list_returns_new_record(repositories):
    created = run(repositories.customers.save(Create(fields=customer_fields()))).unwrap()

    customers = run(repositories.customers.list()).unwrap()

    assert created.id
    assert created.created_at is not None
    assert [c.id for c in customers] == [created.id]
    assert customers[0].name == "Meera Iyer"


def test_update_replaces_fields_and_keeps_created_at(repositories):
    created = run(repositories.customers.save(Create(fields=customer_fields()))).unwrap()

    updated = run(
        repositories.customers.save(
            Update(id=created.id, fields=customer_fields(phone="99000 11111"))
        )
    ).unwrap()
    customers = run(repositories.customers.list()).unwrap()

    assert len(customers) == 1
    assert updated.id == created.id
    assert updated.phone == "99000 11111"
    assert updated.created_at == created.created_at


def test_update_of_missing_id_creates_that_record(repositories):
    saved = run(
        repositories.vendors.save(Update(id="vendor-9", fields={"name": "Shree Plywood"}))
    ).unwrap()

    assert saved.id == "vendor-9"
    assert run(repositories.vendors.get("vendor-9")).unwrap().name == "Shree Plywood"


def test_delete_is_idempotent(repositories):
    created = run(repositories.workers.save(Create(fields={"name": "Suresh"}))).unwrap()

    assert run(repositories.workers.delete(created.id)).unwrap() is True
    assert run(repositories.workers.delete(created.id)).unwrap() is False
    assert run(repositories.workers.list()).unwrap() == []


def test_material_fields_use_remote_column_names(repositories, local_store):
    run(
        repositories.materials.save(
            Create(
                fields={
                    "name": "Teak veneer",
                    "quantity": 40,
                    "unit": "sheet",
                    "price": Decimal("150.50"),
                    "category": "Veneer",
                }
            )
        )
    )

    with open(local_store.data_dir / "inventory.json", encoding="utf-8") as f:
        rows = json.load(f)

    assert rows[0]["total_quantity"] == 40
    assert rows[0]["cost_price"] == "150.50"
    assert "quantity" not in rows[0]

    material = run(repositories.materials.list()).unwrap()[0]
    assert material.quantity == 40
    assert material.price == Decimal("150.50")


def test_payment_writes_exactly_one_payee_column(repositories, local_store):
    run(
        repositories.payments.save(
            Create(fields={"payee_type": "worker", "payee_id": "worker-1", "amount": Decimal("500")})
        )
    )

    with open(local_store.data_dir / "payments.json", encoding="utf-8") as f:
        row = json.load(f)[0]

    assert row["worker_id"] == "worker-1"
    assert row["vendor_id"] is None
    payment = run(repositories.payments.list()).unwrap()[0]
    assert payment.payee_id == "worker-1"


def test_filter_uses_domain_field_names(repositories):
    run(
        repositories.material_issues.save(
            Create(
                fields={
                    "project_id": "project-1",
                    "material_id": "material-1",
                    "quantity": 2,
                    "rate_at_issue": Decimal("10"),
                }
            )
        )
    )

    events = run(repositories.material_issues.list_where(material_id="material-1")).unwrap()

    assert len(events) == 1
    assert events[0].material_id == "material-1"


def test_store_failure_is_returned_not_raised(failing_repositories):
    listed = run(failing_repositories.customers.list())
    saved = run(failing_repositories.customers.save(Create(fields=customer_fields())))

    assert not listed.ok
    assert listed.value is None
    assert "permission denied" in listed.error.message
    assert saved.error.hint == "Check the table's access policies"
    with pytest.raises(PersistenceError):
        saved.unwrap()


def test_unreadable_local_table_is_a_persistence_error(repositories, local_store):
    local_store.data_dir.mkdir(parents=True)
    (local_store.data_dir / "customers.json").write_text("{not json", encoding="utf-8")

    result = run(repositories.customers.list())

    assert not result.ok
    assert result.error.message == "Could not fetch customers"


def test_material_log_is_append_only(repositories):
    first = run(repositories.material_logs.append("material-1", 5, "user-1")).unwrap()
    second = run(
        repositories.material_logs.append(
            "material-1", -2, "user-1", project_id="project-1", reason="issue"
        )
    ).unwrap()

    logs = run(repositories.material_logs.list_for_material("material-1")).unwrap()

    assert [log.id for log in logs] == [first.id, second.id]
    assert logs[1].quantity_change == -2
    assert logs[1].project_id == "project-1"
    assert logs[1].reason == "issue"


def test_transaction_applies_writes_together(local_store, repositories):
    async def scenario():
        async with repositories.transaction():
            customer = (await repositories.customers.save(Create(fields=customer_fields()))).unwrap()
            await repositories.workers.save(Create(fields={"name": "Suresh"}))
            inside = (await repositories.customers.get(customer.id)).unwrap()
            assert inside is not None
            assert not (local_store.data_dir / "customers.json").exists()

    run(scenario())

    assert len(run(repositories.customers.list()).unwrap()) == 1
    assert len(run(repositories.workers.list()).unwrap()) == 1


def test_transaction_discards_writes_when_it_fails(repositories):
    run(repositories.customers.save(Create(fields=customer_fields(name="Kept"))))

    async def scenario():
        async with repositories.transaction():
            await repositories.customers.save(Create(fields=customer_fields(name="Dropped")))
            await repositories.workers.save(Create(fields={"name": "Suresh"}))
            raise PersistenceError("Could not update inventory")

    with pytest.raises(PersistenceError):
        run(scenario())

    assert [c.name for c in run(repositories.customers.list()).unwrap()] == ["Kept"]
    assert run(repositories.workers.list()).unwrap() == []


def test_nested_transaction_joins_the_outer_one(repositories):
    async def scenario():
        async with repositories.transaction():
            async with repositories.transaction():
                await repositories.workers.save(Create(fields={"name": "Suresh"}))
            raise PersistenceError("Could not insert inventory_history")

    with pytest.raises(PersistenceError):
        run(scenario())

    assert run(repositories.workers.list()).unwrap() == []


def test_concurrent_writes_all_land(repositories):
    async def scenario():
        await asyncio.gather(
            *(
                repositories.workers.save(Create(fields={"name": f"Worker {n}"}))
                for n in range(10)
            )
        )

    run(scenario())

    names = sorted(w.name for w in run(repositories.workers.list()).unwrap())
    assert names == sorted(f"Worker {n}" for n in range(10))
