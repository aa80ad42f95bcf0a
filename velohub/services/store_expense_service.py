"""CRUD access to store expenses.

Reads fail open (any failure yields an empty list); writes fail closed
(every failure is raised to the caller).
"""

import logging
from dataclasses import replace

from velohub.dates import InvalidDateError, normalize_date
from velohub.db.models import StoreExpense
from velohub.db.storage import Row, Storage

logger = logging.getLogger(__name__)

TABLE = "store_expenses"


class StoreExpenseError(Exception):
    pass


class StorageUnavailableError(StoreExpenseError):
    def __init__(self) -> None:
        super().__init__("Secure connection required.")


class StorageRejectedError(StoreExpenseError):
    pass


class MissingExpenseIdError(StoreExpenseError, ValueError):
    def __init__(self) -> None:
        super().__init__("Expense ID is required for update")


class MissingStoreIdError(StoreExpenseError, ValueError):
    def __init__(self) -> None:
        super().__init__("Store ID is required to create an expense")


def _read_date(row: Row) -> str | None:
    try:
        return normalize_date(row.get("date"))
    except InvalidDateError:
        # unparseable stored dates are returned as stored
        logger.warning("Unreadable expense date %r", row.get("date"), extra={"expense_id": row.get("id")})
        return row.get("date")


def _from_row(row: Row) -> StoreExpense:
    # The table only tracks created_at, so it stands in for updated_at too.
    return StoreExpense(
        id=row.get("id"),
        store_id=row.get("store_id"),
        description=row.get("description"),
        amount=row.get("amount"),
        date=_read_date(row),
        category=row.get("category"),
        paid=bool(row.get("paid")),
        created_at=row.get("created_at"),
        updated_at=row.get("created_at"),
    )


def _to_row(expense: StoreExpense, include_store: bool) -> Row:
    row: Row = {
        "description": expense.description,
        "amount": expense.amount,
        "date": normalize_date(expense.date),
        "category": expense.category,
        "paid": expense.paid,
    }
    if include_store:
        row = {"store_id": expense.store_id, **row}
    return row


class StoreExpenseService:
    def __init__(self, storage: Storage | None) -> None:
        self.storage = storage

    def _require_storage(self) -> Storage:
        if self.storage is None:
            raise StorageUnavailableError()
        return self.storage

    async def list_expenses(self, store_id: str) -> list[StoreExpense]:
        if not store_id or self.storage is None:
            return []
        try:
            result = await self.storage.select(TABLE, store_id=store_id)
            if not result.ok:
                logger.warning("Listing expenses failed: %s", result.error, extra={"store_id": store_id})
                return []
            return [_from_row(row) for row in result.data or []]
        except Exception:
            logger.warning("Listing expenses failed", exc_info=True, extra={"store_id": store_id})
            return []

    async def create_expense(self, expense: StoreExpense) -> StoreExpense:
        storage = self._require_storage()
        if not expense.store_id:
            raise MissingStoreIdError()
        result = await storage.insert(TABLE, _to_row(expense, include_store=True))
        if not result.ok:
            raise StorageRejectedError(result.error)
        expense_id = result.data["id"]
        logger.info("Created expense", extra={"store_id": expense.store_id, "expense_id": expense_id})
        return replace(expense, id=expense_id)

    async def update_expense(self, expense: StoreExpense) -> StoreExpense:
        if not expense.id:
            raise MissingExpenseIdError()
        storage = self._require_storage()
        result = await storage.update(TABLE, expense.id, _to_row(expense, include_store=False))
        if not result.ok:
            raise StorageRejectedError(result.error)
        logger.info("Updated expense", extra={"expense_id": expense.id})
        return expense

    async def delete_expense(self, expense_id: str) -> None:
        storage = self._require_storage()
        result = await storage.delete(TABLE, expense_id)
        if not result.ok:
            raise StorageRejectedError(result.error)
        logger.info("Deleted expense", extra={"expense_id": expense_id})
