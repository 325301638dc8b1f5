"""reserve_stock handler."""

import logging
from typing import Any

from flowline.events import SystemEvent
from flowline.exceptions import ValidationError

logger = logging.getLogger(__name__)

REQUIRED_ITEM_KEYS = ("itemId", "warehouseId", "quantity")


def _validate_items(items: Any) -> list[dict[str, Any]]:
    if not isinstance(items, list):
        raise ValidationError("reserve_stock requires items array")
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"reserve_stock item {index} must be an object")
        missing = [key for key in REQUIRED_ITEM_KEYS if item.get(key) is None]
        if missing:
            raise ValidationError(
                f"reserve_stock item {index} is missing {', '.join(missing)}"
            )
    return items


async def reserve_stock(params: dict[str, Any], event: SystemEvent) -> None:
    """Reserve each ``{itemId, warehouseId, quantity}`` entry in order.

    Every item is checked before anything is reserved. Each reservation
    commits on its own; insufficient stock is logged and the remaining
    items still run.
    """
    items = _validate_items(params.get("items"))

    from flowline.services.inventory import reserve_stock as reserve
    from flowline.storage import get_committing_session

    for item in items:
        async with get_committing_session() as session:
            ok = await reserve(session, item["itemId"], item["warehouseId"], item["quantity"])
        if not ok:
            logger.warning(
                "[Action:reserve_stock] Insufficient stock for item %s in warehouse %s",
                item["itemId"],
                item["warehouseId"],
            )

    logger.info(
        "[Action:reserve_stock] Processed %d item(s) for %s:%s",
        len(items),
        event.entity_type,
        event.entity_id,
    )
