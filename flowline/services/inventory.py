"""Stock reservation."""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


async def reserve_stock(
    session: AsyncSession,
    item_id: str,
    warehouse_id: str,
    qty: Decimal | int | float,
) -> bool:
    """Reserve ``qty`` of an item in a warehouse.

    Available stock is on-hand minus already-reserved. The reserved
    quantity is bumped with an optimistic version check.

    Returns:
        False when there is no stock level, not enough available stock,
        or the level changed concurrently.
    """
    from flowline.dal.inventory import InventoryRepository

    quantity = Decimal(str(qty))
    repo = InventoryRepository(session)
    level = await repo.get_level(item_id, warehouse_id)
    if level is None:
        return False

    available = Decimal(level.qty_on_hand) - Decimal(level.qty_reserved)
    if available < quantity:
        return False

    if not await repo.add_reserved(level, quantity):
        logger.warning(
            "Inventory level for item %s in %s changed during reservation",
            item_id,
            warehouse_id,
        )
        return False
    return True
