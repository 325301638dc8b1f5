"""Master data and stock levels used by follow-ups and reservations."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from flowline.storage.models import Base, TimestampMixin, UUIDMixin


class Item(Base, UUIDMixin, TimestampMixin):
    """Stock-keeping item."""

    __tablename__ = "items"

    item_code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    uom_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class Project(Base, UUIDMixin, TimestampMixin):
    """Project site that owns warehouses."""

    __tablename__ = "projects"

    project_code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    project_name: Mapped[str] = mapped_column(String(255), nullable=False)


class Warehouse(Base, UUIDMixin, TimestampMixin):
    """Physical store, optionally assigned to a project."""

    __tablename__ = "warehouses"

    warehouse_code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    warehouse_name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_id: Mapped[str | None] = mapped_column(
        ForeignKey("projects.id"),
        nullable=True,
        index=True,
    )


class InventoryLevel(Base, UUIDMixin, TimestampMixin):
    """On-hand and reserved quantity of one item in one warehouse.

    ``version`` is bumped on every write for optimistic locking.
    """

    __tablename__ = "inventory_levels"
    __table_args__ = (
        UniqueConstraint("item_id", "warehouse_id", name="uq_inventory_levels_item_warehouse"),
    )

    item_id: Mapped[str] = mapped_column(ForeignKey("items.id"), nullable=False)
    warehouse_id: Mapped[str] = mapped_column(ForeignKey("warehouses.id"), nullable=False)
    qty_on_hand: Mapped[Decimal] = mapped_column(Numeric(15, 3), nullable=False, default=0)
    qty_reserved: Mapped[Decimal] = mapped_column(Numeric(15, 3), nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class DocumentCounter(Base, UUIDMixin):
    """Per-type, per-year running sequence for document numbers."""

    __tablename__ = "document_counters"
    __table_args__ = (
        UniqueConstraint("document_type", "year", name="uq_document_counters_type_year"),
    )

    document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
