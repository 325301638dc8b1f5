"""Repositories for stock levels and document number counters."""

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from flowline.storage.entities import DocumentCounter, InventoryLevel


class InventoryRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_level(self, item_id: str, warehouse_id: str) -> InventoryLevel | None:
        stmt = (
            select(InventoryLevel)
            .where(InventoryLevel.item_id == item_id)
            .where(InventoryLevel.warehouse_id == warehouse_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add_reserved(self, level: InventoryLevel, qty: Decimal) -> bool:
        """Increment reserved quantity if ``level.version`` is still current.

        Returns:
            False if another writer bumped the version first.
        """
        stmt = (
            update(InventoryLevel)
            .where(InventoryLevel.id == level.id)
            .where(InventoryLevel.version == level.version)
            .values(
                qty_reserved=InventoryLevel.qty_reserved + qty,
                version=InventoryLevel.version + 1,
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1


class DocumentCounterRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def next_value(self, document_type: str, year: int) -> int:
        """Atomically increment and return the counter for a type and year."""
        stmt = (
            insert(DocumentCounter)
            .values(document_type=document_type, year=year, last_value=1)
            .on_conflict_do_update(
                constraint="uq_document_counters_type_year",
                set_={"last_value": DocumentCounter.last_value + 1},
            )
            .returning(DocumentCounter.last_value)
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
