"""create_follow_up handler: auto-generate downstream documents.

Supported chains (source -> target, aliases in parentheses):

    mrrv -> qci (rfim)            GRN stored, inspect it
    mrrv -> dr (osd)              GRN with damage, raise a discrepancy report
    rfim -> dr (osd)              QCI failed, raise a discrepancy report
    mirv -> gate_pass             MI issued, let material out
    imsf -> wt (stock_transfer)   IMSF confirmed, move stock between projects

Discrepancy reports are unique per GRN: if one exists the chain is a no-op.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from flowline.events import SystemEvent
from flowline.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

FollowUpChain = Callable[[AsyncSession, SystemEvent], Awaitable[None]]


async def _grn_to_qci(session: AsyncSession, event: SystemEvent) -> None:
    from flowline.dal.follow_ups import FollowUpRepository
    from flowline.services.numbering import generate_document_number

    repo = FollowUpRepository(session)
    grn = await repo.get_grn(event.entity_id)
    if grn is None:
        raise NotFoundError(f"Source GRN {event.entity_id} not found", entity="mrrv")

    qci = await repo.create_qci(
        rfim_number=await generate_document_number(session, "qci"),
        mrrv_id=grn.id,
        request_date=datetime.now(UTC),
        status="pending",
        comments=f"Auto-created from GRN {grn.mrrv_number} via workflow rule",
        created_by_id=event.performed_by_id,
    )
    logger.info("[Action:create_follow_up] Created QCI %s from GRN %s", qci.id, grn.id)


async def _create_dr_for_grn(
    session: AsyncSession,
    grn_id: str,
    report_type: str,
    source: str,
) -> None:
    from flowline.dal.follow_ups import FollowUpRepository
    from flowline.services.numbering import generate_document_number

    repo = FollowUpRepository(session)
    if await repo.find_dr_for_grn(grn_id) is not None:
        logger.info("[Action:create_follow_up] DR already exists for GRN %s, skipping", grn_id)
        return

    dr = await repo.create_dr(
        osd_number=await generate_document_number(session, "dr"),
        mrrv_id=grn_id,
        report_date=datetime.now(UTC),
        report_types=[report_type],
        status="draft",
    )
    logger.info("[Action:create_follow_up] Created DR %s from %s", dr.id, source)


async def _qci_to_dr(session: AsyncSession, event: SystemEvent) -> None:
    from flowline.dal.follow_ups import FollowUpRepository

    qci = await FollowUpRepository(session).get_qci(event.entity_id)
    if qci is None:
        raise NotFoundError(f"Source QCI {event.entity_id} not found", entity="rfim")
    if not qci.mrrv_id:
        raise ValidationError(f"QCI {event.entity_id} has no parent GRN")

    await _create_dr_for_grn(session, qci.mrrv_id, "quality_failure", f"QCI {qci.id}")


async def _grn_to_dr(session: AsyncSession, event: SystemEvent) -> None:
    from flowline.dal.follow_ups import FollowUpRepository

    grn = await FollowUpRepository(session).get_grn(event.entity_id)
    if grn is None:
        raise NotFoundError(f"Source GRN {event.entity_id} not found", entity="mrrv")

    await _create_dr_for_grn(session, grn.id, "damage", f"GRN {grn.id}")


async def _mi_to_gate_pass(session: AsyncSession, event: SystemEvent) -> None:
    from flowline.dal.follow_ups import FollowUpRepository
    from flowline.services.numbering import generate_document_number

    repo = FollowUpRepository(session)
    mi = await repo.get_mi_with_lines(event.entity_id)
    if mi is None:
        raise NotFoundError(f"Source MI {event.entity_id} not found", entity="mirv")

    items = [
        {
            "item_id": line.item_id,
            "quantity": line.qty_issued if line.qty_issued is not None else line.qty_requested,
            "uom_id": line.item.uom_id if line.item is not None else None,
        }
        for line in mi.lines
    ]
    gate_pass = await repo.create_gate_pass(
        items,
        gate_pass_number=await generate_document_number(session, "gate_pass"),
        pass_type="outbound",
        mirv_id=mi.id,
        project_id=mi.project_id,
        warehouse_id=mi.warehouse_id,
        vehicle_number="TBD",
        driver_name="TBD",
        destination="Project Site",
        issue_date=datetime.now(UTC),
        status="draft",
        created_by_id=event.performed_by_id,
    )
    logger.info(
        "[Action:create_follow_up] Created GatePass %s from MI %s (%d item(s))",
        gate_pass.id,
        mi.id,
        len(items),
    )


async def _imsf_to_wt(session: AsyncSession, event: SystemEvent) -> None:
    from flowline.dal.follow_ups import FollowUpRepository
    from flowline.services.numbering import generate_document_number

    repo = FollowUpRepository(session)
    imsf = await repo.get_imsf_with_lines(event.entity_id)
    if imsf is None:
        raise NotFoundError(f"Source IMSF {event.entity_id} not found", entity="imsf")

    from_warehouse_id = await repo.first_project_warehouse(imsf.sender_project_id)
    to_warehouse_id = await repo.first_project_warehouse(imsf.receiver_project_id)
    if not from_warehouse_id or not to_warehouse_id:
        raise ValidationError(
            "Cannot create WT: sender or receiver project has no assigned warehouse"
        )

    lines = [
        {"item_id": line.item_id, "quantity": line.qty, "uom_id": line.uom_id}
        for line in imsf.lines
    ]
    transfer = await repo.create_stock_transfer(
        lines,
        transfer_number=await generate_document_number(session, "wt"),
        transfer_type="project_to_project",
        from_warehouse_id=from_warehouse_id,
        to_warehouse_id=to_warehouse_id,
        from_project_id=imsf.sender_project_id,
        to_project_id=imsf.receiver_project_id,
        requested_by_id=event.performed_by_id or imsf.created_by_id,
        transfer_date=datetime.now(UTC),
        status="draft",
        notes=f"Auto-created from IMSF {imsf.imsf_number} via workflow rule",
    )
    logger.info("[Action:create_follow_up] Created WT %s from IMSF %s", transfer.id, imsf.id)


FOLLOW_UP_CHAINS: dict[tuple[str, str], FollowUpChain] = {
    ("mrrv", "qci"): _grn_to_qci,
    ("mrrv", "rfim"): _grn_to_qci,
    ("mrrv", "dr"): _grn_to_dr,
    ("mrrv", "osd"): _grn_to_dr,
    ("rfim", "dr"): _qci_to_dr,
    ("rfim", "osd"): _qci_to_dr,
    ("mirv", "gate_pass"): _mi_to_gate_pass,
    ("imsf", "wt"): _imsf_to_wt,
    ("imsf", "stock_transfer"): _imsf_to_wt,
}


async def create_follow_up(params: dict[str, Any], event: SystemEvent) -> None:
    """Create the follow-up document named by ``targetDocType``.

    Unsupported source/target pairs are logged and ignored; failures of
    supported chains are logged and re-raised.
    """
    target = params.get("targetDocType")
    if not target:
        raise ValidationError("create_follow_up requires targetDocType")

    chain = FOLLOW_UP_CHAINS.get((event.entity_type, target))
    if chain is None:
        logger.warning(
            "[Action:create_follow_up] Unsupported chain: %s -> %s. Supported: %s",
            event.entity_type,
            target,
            ", ".join(f"{s}->{t}" for s, t in FOLLOW_UP_CHAINS),
        )
        return

    from flowline.storage import get_committing_session

    try:
        async with get_committing_session() as session:
            await chain(session, event)
    except Exception as e:
        logger.error(
            "[Action:create_follow_up] Failed to create %s from %s:%s: %s",
            target,
            event.entity_type,
            event.entity_id,
            e,
        )
        raise
