"""Warehouse document models.

Every document shares the approval-relevant columns from DocumentMixin;
the engine only mutates those plus the rows it creates as follow-ups.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flowline.storage.entities.inventory import Item
from flowline.storage.models import Base, TimestampMixin, UUIDMixin


class DocumentMixin:
    """Status and approval columns common to all documents."""

    status: Mapped[str] = mapped_column(String(30), nullable=False, default="draft")
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    approved_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    approved_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    sla_due_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Deadline for the current approval level",
    )
    total_value: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)


class Mrrv(Base, UUIDMixin, TimestampMixin, DocumentMixin):
    """Goods receipt note (GRN)."""

    __tablename__ = "mrrv"

    mrrv_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    project_id: Mapped[str | None] = mapped_column(ForeignKey("projects.id"), nullable=True)
    warehouse_id: Mapped[str | None] = mapped_column(ForeignKey("warehouses.id"), nullable=True)
    receive_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Rfim(Base, UUIDMixin, TimestampMixin, DocumentMixin):
    """Quality control inspection (QCI) request."""

    __tablename__ = "rfim"

    rfim_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    mrrv_id: Mapped[str | None] = mapped_column(ForeignKey("mrrv.id"), nullable=True)
    request_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)


class OsdReport(Base, UUIDMixin, TimestampMixin, DocumentMixin):
    """Discrepancy report (DR) for over/short/damaged receipts."""

    __tablename__ = "osd_reports"

    osd_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    mrrv_id: Mapped[str | None] = mapped_column(ForeignKey("mrrv.id"), nullable=True, index=True)
    report_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    report_types: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)


class Mirv(Base, UUIDMixin, TimestampMixin, DocumentMixin):
    """Material issue (MI)."""

    __tablename__ = "mirv"

    mirv_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    project_id: Mapped[str | None] = mapped_column(ForeignKey("projects.id"), nullable=True)
    warehouse_id: Mapped[str | None] = mapped_column(ForeignKey("warehouses.id"), nullable=True)

    lines: Mapped[list[MirvLine]] = relationship(back_populates="mirv")


class MirvLine(Base, UUIDMixin):
    __tablename__ = "mirv_lines"

    mirv_id: Mapped[str] = mapped_column(ForeignKey("mirv.id", ondelete="CASCADE"), nullable=False)
    item_id: Mapped[str] = mapped_column(ForeignKey("items.id"), nullable=False)
    qty_requested: Mapped[Decimal] = mapped_column(Numeric(15, 3), nullable=False)
    qty_issued: Mapped[Decimal | None] = mapped_column(Numeric(15, 3), nullable=True)

    mirv: Mapped[Mirv] = relationship(back_populates="lines")
    item: Mapped[Item] = relationship()


class GatePass(Base, UUIDMixin, TimestampMixin, DocumentMixin):
    """Gate pass authorizing material to leave a warehouse."""

    __tablename__ = "gate_passes"

    gate_pass_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    pass_type: Mapped[str] = mapped_column(String(20), nullable=False)
    mirv_id: Mapped[str | None] = mapped_column(ForeignKey("mirv.id"), nullable=True)
    project_id: Mapped[str | None] = mapped_column(ForeignKey("projects.id"), nullable=True)
    warehouse_id: Mapped[str | None] = mapped_column(ForeignKey("warehouses.id"), nullable=True)
    vehicle_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    driver_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    destination: Mapped[str | None] = mapped_column(String(255), nullable=True)
    issue_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[list[GatePassItem]] = relationship(back_populates="gate_pass")


class GatePassItem(Base, UUIDMixin):
    __tablename__ = "gate_pass_items"

    gate_pass_id: Mapped[str] = mapped_column(
        ForeignKey("gate_passes.id", ondelete="CASCADE"),
        nullable=False,
    )
    item_id: Mapped[str] = mapped_column(ForeignKey("items.id"), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(15, 3), nullable=False)
    uom_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    gate_pass: Mapped[GatePass] = relationship(back_populates="items")


class Imsf(Base, UUIDMixin, TimestampMixin, DocumentMixin):
    """Inter-project material shifting form."""

    __tablename__ = "imsf"

    imsf_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    sender_project_id: Mapped[str] = mapped_column(ForeignKey("projects.id"), nullable=False)
    receiver_project_id: Mapped[str] = mapped_column(ForeignKey("projects.id"), nullable=False)

    lines: Mapped[list[ImsfLine]] = relationship(back_populates="imsf")


class ImsfLine(Base, UUIDMixin):
    __tablename__ = "imsf_lines"

    imsf_id: Mapped[str] = mapped_column(ForeignKey("imsf.id", ondelete="CASCADE"), nullable=False)
    item_id: Mapped[str] = mapped_column(ForeignKey("items.id"), nullable=False)
    qty: Mapped[Decimal] = mapped_column(Numeric(15, 3), nullable=False)
    uom_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    imsf: Mapped[Imsf] = relationship(back_populates="lines")


class StockTransfer(Base, UUIDMixin, TimestampMixin, DocumentMixin):
    """Warehouse transfer (WT)."""

    __tablename__ = "stock_transfers"

    transfer_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    transfer_type: Mapped[str] = mapped_column(String(30), nullable=False)
    from_warehouse_id: Mapped[str] = mapped_column(ForeignKey("warehouses.id"), nullable=False)
    to_warehouse_id: Mapped[str] = mapped_column(ForeignKey("warehouses.id"), nullable=False)
    from_project_id: Mapped[str | None] = mapped_column(ForeignKey("projects.id"), nullable=True)
    to_project_id: Mapped[str | None] = mapped_column(ForeignKey("projects.id"), nullable=True)
    requested_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    transfer_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    lines: Mapped[list[StockTransferLine]] = relationship(back_populates="transfer")


class StockTransferLine(Base, UUIDMixin):
    __tablename__ = "stock_transfer_lines"

    transfer_id: Mapped[str] = mapped_column(
        ForeignKey("stock_transfers.id", ondelete="CASCADE"),
        nullable=False,
    )
    item_id: Mapped[str] = mapped_column(ForeignKey("items.id"), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(15, 3), nullable=False)
    uom_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    transfer: Mapped[StockTransfer] = relationship(back_populates="lines")


class Mrv(Base, UUIDMixin, TimestampMixin, DocumentMixin):
    """Material return note (MRN)."""

    __tablename__ = "mrv"

    mrv_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    project_id: Mapped[str | None] = mapped_column(ForeignKey("projects.id"), nullable=True)


class JobOrder(Base, UUIDMixin, TimestampMixin, DocumentMixin):
    """Transport or equipment job order."""

    __tablename__ = "job_orders"

    jo_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    jo_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)


class MaterialRequisition(Base, UUIDMixin, TimestampMixin, DocumentMixin):
    """Material requisition form (MRF)."""

    __tablename__ = "material_requisitions"

    mrf_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    project_id: Mapped[str | None] = mapped_column(ForeignKey("projects.id"), nullable=True)


class Shipment(Base, UUIDMixin, TimestampMixin, DocumentMixin):
    """Inbound shipment."""

    __tablename__ = "shipments"

    shipment_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    carrier: Mapped[str | None] = mapped_column(String(255), nullable=True)
