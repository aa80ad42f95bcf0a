"""Row-oriented storage capability used by the repository adapters.

Backends report rejections through ``StorageResult.error`` (the backend's
own message) instead of raising, mirroring the ``{data, error}`` shape of
hosted row APIs.
"""

from dataclasses import dataclass
from typing import Any, Protocol

Row = dict[str, Any]


@dataclass(frozen=True, slots=True)
class StorageResult:
    data: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Storage(Protocol):
    async def select(self, table: str, **equals: Any) -> StorageResult: ...

    async def insert(self, table: str, row: Row) -> StorageResult: ...

    async def update(self, table: str, row_id: str, values: Row) -> StorageResult: ...

    async def delete(self, table: str, row_id: str) -> StorageResult: ...

    async def ping(self) -> None: ...
