"""Loaders and writers used by follow-up document chains."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from flowline.storage.entities import (
    GatePass,
    GatePassItem,
    Imsf,
    Mirv,
    MirvLine,
    Mrrv,
    OsdReport,
    Rfim,
    StockTransfer,
    StockTransferLine,
    Warehouse,
)


class FollowUpRepository:
    """Source-document reads and follow-up document inserts."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_grn(self, grn_id: str) -> Mrrv | None:
        return await self.session.get(Mrrv, grn_id)

    async def get_qci(self, qci_id: str) -> Rfim | None:
        return await self.session.get(Rfim, qci_id)

    async def get_mi_with_lines(self, mi_id: str) -> Mirv | None:
        """Material issue with its lines and each line's item."""
        stmt = (
            select(Mirv)
            .options(selectinload(Mirv.lines).selectinload(MirvLine.item))
            .where(Mirv.id == mi_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_imsf_with_lines(self, imsf_id: str) -> Imsf | None:
        stmt = select(Imsf).options(selectinload(Imsf.lines)).where(Imsf.id == imsf_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def first_project_warehouse(self, project_id: str | None) -> str | None:
        """ID of the first warehouse assigned to a project."""
        if not project_id:
            return None
        stmt = (
            select(Warehouse.id)
            .where(Warehouse.project_id == project_id)
            .order_by(Warehouse.created_at)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_dr_for_grn(self, grn_id: str) -> OsdReport | None:
        """Existing discrepancy report raised against a GRN."""
        stmt = select(OsdReport).where(OsdReport.mrrv_id == grn_id).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_qci(self, **fields: Any) -> Rfim:
        qci = Rfim(**fields)
        self.session.add(qci)
        await self.session.flush()
        return qci

    async def create_dr(self, **fields: Any) -> OsdReport:
        dr = OsdReport(**fields)
        self.session.add(dr)
        await self.session.flush()
        return dr

    async def create_gate_pass(self, items: list[dict[str, Any]], **fields: Any) -> GatePass:
        """Gate pass plus one GatePassItem per entry in ``items``."""
        gate_pass = GatePass(**fields)
        gate_pass.items = [GatePassItem(**item) for item in items]
        self.session.add(gate_pass)
        await self.session.flush()
        return gate_pass

    async def create_stock_transfer(
        self,
        lines: list[dict[str, Any]],
        **fields: Any,
    ) -> StockTransfer:
        """Warehouse transfer plus one line per entry in ``lines``."""
        transfer = StockTransfer(**fields)
        transfer.lines = [StockTransferLine(**line) for line in lines]
        self.session.add(transfer)
        await self.session.flush()
        return transfer
