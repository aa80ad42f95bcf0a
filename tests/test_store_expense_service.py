from datetime import date
from unittest.mock import AsyncMock

import pytest

from velohub.dates import InvalidDateError
from velohub.db.database import SqliteStorage
from velohub.db.models import StoreExpense
from velohub.db.storage import StorageResult
from velohub.services.store_expense_service import (
    MissingExpenseIdError,
    MissingStoreIdError,
    StorageRejectedError,
    StorageUnavailableError,
    StoreExpenseService,
)


def _make_expense(**overrides) -> StoreExpense:
    defaults = dict(
        store_id="store-1",
        description="Aluguel",
        amount=2500.0,
        date="2026-02-12",
        category="rent",
        paid=False,
    )
    defaults.update(overrides)
    return StoreExpense(**defaults)


@pytest.fixture
def service() -> StoreExpenseService:
    return StoreExpenseService(SqliteStorage())


async def test_create_then_list(service):
    created = await service.create_expense(_make_expense())
    assert created.id

    expenses = await service.list_expenses("store-1")
    assert len(expenses) == 1
    stored = expenses[0]
    assert stored.id == created.id
    assert stored.store_id == "store-1"
    assert stored.description == "Aluguel"
    assert stored.amount == 2500.0
    assert stored.date == "2026-02-12"
    assert stored.category == "rent"
    assert stored.paid is False


async def test_create_returns_input_with_id_only(service):
    expense = _make_expense()
    created = await service.create_expense(expense)
    assert created.created_at is None
    assert created.updated_at is None
    assert expense.id is None


async def test_negative_amount_allowed(service):
    await service.create_expense(_make_expense(amount=-120.5))
    expenses = await service.list_expenses("store-1")
    assert expenses[0].amount == -120.5


async def test_list_only_returns_own_store(service):
    await service.create_expense(_make_expense(store_id="a"))
    await service.create_expense(_make_expense(store_id="b"))
    expenses = await service.list_expenses("a")
    assert [e.store_id for e in expenses] == ["a"]


async def test_created_at_mirrors_updated_at(service):
    await service.create_expense(_make_expense())
    [stored] = await service.list_expenses("store-1")
    assert stored.created_at is not None
    assert stored.updated_at == stored.created_at


@pytest.mark.parametrize(
    "raw",
    ["2026-02-12T03:00:00.000Z", "2026-02-12 10:30:00", "2026/02/12", "12/02/2026", date(2026, 2, 12)],
)
async def test_dates_stored_in_canonical_form(service, raw):
    await service.create_expense(_make_expense(date=raw))
    [stored] = await service.list_expenses("store-1")
    assert stored.date == "2026-02-12"


async def test_invalid_date_rejected_before_write(service):
    with pytest.raises(InvalidDateError):
        await service.create_expense(_make_expense(date="next tuesday"))
    assert await service.list_expenses("store-1") == []


async def test_create_requires_store_id(service):
    with pytest.raises(MissingStoreIdError):
        await service.create_expense(_make_expense(store_id=""))


async def test_update_changes_fields_but_not_store(service):
    created = await service.create_expense(_make_expense())
    moved = _make_expense(
        id=created.id, store_id="other-store", description="Aluguel fev", amount=2600.0, paid=True
    )
    result = await service.update_expense(moved)
    assert result is moved

    [stored] = await service.list_expenses("store-1")
    assert stored.description == "Aluguel fev"
    assert stored.amount == 2600.0
    assert stored.paid is True
    assert await service.list_expenses("other-store") == []


async def test_update_without_id_makes_no_call():
    storage = AsyncMock()
    service = StoreExpenseService(storage)
    with pytest.raises(MissingExpenseIdError, match="Expense ID is required"):
        await service.update_expense(_make_expense())
    storage.update.assert_not_called()


async def test_update_without_id_is_validation_error_even_unconfigured():
    with pytest.raises(MissingExpenseIdError):
        await StoreExpenseService(None).update_expense(_make_expense())


async def test_update_unknown_id_rejected(service):
    with pytest.raises(StorageRejectedError, match="No row"):
        await service.update_expense(_make_expense(id="missing"))


async def test_delete(service):
    created = await service.create_expense(_make_expense())
    await service.delete_expense(created.id)
    assert await service.list_expenses("store-1") == []


async def test_delete_unknown_id_surfaces_backend_message(service):
    with pytest.raises(StorageRejectedError) as exc_info:
        await service.delete_expense("missing")
    assert str(exc_info.value) == "No row in store_expenses with id 'missing'"


async def test_writes_fail_without_storage():
    service = StoreExpenseService(None)
    with pytest.raises(StorageUnavailableError, match="Secure connection required"):
        await service.create_expense(_make_expense())
    with pytest.raises(StorageUnavailableError):
        await service.update_expense(_make_expense(id="x"))
    with pytest.raises(StorageUnavailableError):
        await service.delete_expense("x")


async def test_insert_rejection_propagates_message():
    storage = AsyncMock()
    storage.insert.return_value = StorageResult(error="duplicate key value violates unique constraint")
    with pytest.raises(StorageRejectedError, match="duplicate key"):
        await StoreExpenseService(storage).create_expense(_make_expense())
    storage.insert.assert_awaited_once()


async def test_list_without_storage_is_empty():
    assert await StoreExpenseService(None).list_expenses("store-1") == []


async def test_list_empty_store_id_makes_no_call():
    storage = AsyncMock()
    assert await StoreExpenseService(storage).list_expenses("") == []
    storage.select.assert_not_called()


async def test_list_fails_open_on_backend_error():
    storage = AsyncMock()
    storage.select.return_value = StorageResult(error="permission denied for table store_expenses")
    assert await StoreExpenseService(storage).list_expenses("store-1") == []


async def test_list_fails_open_on_exception():
    storage = AsyncMock()
    storage.select.side_effect = ConnectionError("backend gone")
    assert await StoreExpenseService(storage).list_expenses("store-1") == []


async def test_unreadable_date_does_not_hide_other_rows(service, db):
    for day in ("2026-02-01", "2026-02-02", "2026-02-03"):
        await service.create_expense(_make_expense(store_id="s1", date=day))
    await db.execute(
        "INSERT INTO store_expenses (id, store_id, amount, date) VALUES ('legacy', 's1', 99.0, 'fev/2026')"
    )
    await db.commit()

    expenses = await service.list_expenses("s1")
    assert len(expenses) == 4
    by_id = {e.id: e for e in expenses}
    assert by_id.pop("legacy").date == "fev/2026"
    assert sorted(e.date for e in by_id.values()) == ["2026-02-01", "2026-02-02", "2026-02-03"]
