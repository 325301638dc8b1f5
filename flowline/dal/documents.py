"""Document type registry and a generic per-type document repository.

The engine touches many document tables but only through a handful of
shared columns (status, approval fields). DOCUMENT_MODELS maps each
closed DocumentType to its ORM model; DocumentRepository wraps one model.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from flowline.exceptions import NotFoundError, UnknownEntityTypeError
from flowline.storage.entities import (
    GatePass,
    JobOrder,
    MaterialRequisition,
    Mirv,
    Mrrv,
    Mrv,
    OsdReport,
    Rfim,
    Shipment,
    StockTransfer,
)
from flowline.storage.models import Base


class DocumentType(StrEnum):
    """Document types whose status the engine may change or approve."""

    MRRV = "mrrv"
    MIRV = "mirv"
    MRV = "mrv"
    RFIM = "rfim"
    OSD = "osd"
    JO = "jo"
    GATE_PASS = "gate_pass"
    STOCK_TRANSFER = "stock_transfer"
    MRF = "mrf"
    SHIPMENT = "shipment"


DOCUMENT_MODELS: dict[DocumentType, type[Base]] = {
    DocumentType.MRRV: Mrrv,
    DocumentType.MIRV: Mirv,
    DocumentType.MRV: Mrv,
    DocumentType.RFIM: Rfim,
    DocumentType.OSD: OsdReport,
    DocumentType.JO: JobOrder,
    DocumentType.GATE_PASS: GatePass,
    DocumentType.STOCK_TRANSFER: StockTransfer,
    DocumentType.MRF: MaterialRequisition,
    DocumentType.SHIPMENT: Shipment,
}

# Human-readable names used in notification titles
DOCUMENT_LABELS: dict[DocumentType, str] = {
    DocumentType.MRRV: "GRN",
    DocumentType.MIRV: "MI",
    DocumentType.MRV: "MRN",
    DocumentType.RFIM: "QCI",
    DocumentType.OSD: "DR",
    DocumentType.JO: "Job Order",
    DocumentType.GATE_PASS: "Gate Pass",
    DocumentType.STOCK_TRANSFER: "WT",
    DocumentType.MRF: "MRF",
    DocumentType.SHIPMENT: "Shipment",
}


def resolve_document_type(entity_type: str) -> DocumentType:
    """Map an entity type string onto the closed DocumentType set.

    Raises:
        UnknownEntityTypeError: If the type has no document model.
    """
    try:
        return DocumentType(entity_type)
    except ValueError:
        raise UnknownEntityTypeError(entity_type) from None


def document_label(entity_type: str) -> str:
    """Display label for a document type, falling back to the raw type."""
    try:
        return DOCUMENT_LABELS[DocumentType(entity_type)]
    except ValueError:
        return entity_type


class DocumentRepository:
    """Status and approval-field access for one document model."""

    def __init__(self, session: AsyncSession, model: type[Base]):
        self.session = session
        self.model = model

    async def get(self, document_id: str) -> Any | None:
        """Get a document by ID."""
        return await self.session.get(self.model, document_id)

    async def update_fields(self, document_id: str, **fields: Any) -> None:
        """Update columns on one document.

        Raises:
            NotFoundError: If no row has the given ID.
        """
        stmt = update(self.model).where(self.model.id == document_id).values(**fields)
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            raise NotFoundError(
                f"{self.model.__name__} {document_id} not found",
                entity=self.model.__name__,
            )

    async def update_status(self, document_id: str, status: str) -> None:
        """Set only the status column."""
        await self.update_fields(document_id, status=status)

    async def list_overdue(self, now: datetime, status: str = "pending_approval") -> list[Any]:
        """Documents in ``status`` whose SLA deadline has passed."""
        stmt = (
            select(self.model)
            .where(self.model.status == status)
            .where(self.model.sla_due_date.is_not(None))
            .where(self.model.sla_due_date < now)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


def get_document_repository(session: AsyncSession, entity_type: str) -> DocumentRepository:
    """Build the repository for an entity type.

    Raises:
        UnknownEntityTypeError: If the type has no document model.
    """
    return DocumentRepository(session, DOCUMENT_MODELS[resolve_document_type(entity_type)])
