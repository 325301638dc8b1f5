"""Document status state machines.

Each document type has its own table of allowed status moves. The
approval-related core (draft, pending_approval, approved, rejected) is
shared; the rest is type-specific fulfilment.
"""

from flowline.dal.documents import DocumentType

_APPROVAL_CORE: dict[str, set[str]] = {
    "draft": {"pending_approval", "cancelled"},
    "pending_approval": {"approved", "rejected", "draft"},
    "rejected": {"draft", "cancelled"},
    "cancelled": set(),  # Terminal state
}


def _with_core(extra: dict[str, set[str]]) -> dict[str, set[str]]:
    table = {status: set(targets) for status, targets in _APPROVAL_CORE.items()}
    for status, targets in extra.items():
        table.setdefault(status, set()).update(targets)
    return table


STATUS_TRANSITIONS: dict[DocumentType, dict[str, set[str]]] = {
    DocumentType.MRRV: _with_core(
        {
            "approved": {"qc_pending", "received", "cancelled"},
            "qc_pending": {"received", "rejected"},
            "received": {"stored"},
            "stored": set(),
        }
    ),
    DocumentType.MIRV: _with_core(
        {
            "approved": {"partially_issued", "issued", "cancelled"},
            "partially_issued": {"issued"},
            "issued": {"completed"},
            "completed": set(),
        }
    ),
    DocumentType.MRV: _with_core(
        {
            "approved": {"received", "cancelled"},
            "received": {"completed"},
            "completed": set(),
        }
    ),
    DocumentType.RFIM: {
        "pending": {"in_progress", "cancelled"},
        "in_progress": {"passed", "failed"},
        "passed": {"completed"},
        "failed": {"completed"},
        "completed": set(),
        "cancelled": set(),
    },
    DocumentType.OSD: _with_core(
        {
            "approved": {"under_review", "resolved"},
            "under_review": {"resolved"},
            "resolved": {"closed"},
            "closed": set(),
        }
    ),
    DocumentType.JO: _with_core(
        {
            "approved": {"assigned", "cancelled"},
            "assigned": {"in_progress", "cancelled"},
            "in_progress": {"completed", "on_hold"},
            "on_hold": {"in_progress", "cancelled"},
            "completed": {"closed"},
            "closed": set(),
        }
    ),
    DocumentType.GATE_PASS: _with_core(
        {
            "approved": {"released", "cancelled"},
            "released": {"returned", "closed"},
            "returned": {"closed"},
            "closed": set(),
        }
    ),
    DocumentType.STOCK_TRANSFER: _with_core(
        {
            "approved": {"shipped", "cancelled"},
            "shipped": {"received"},
            "received": {"completed"},
            "completed": set(),
        }
    ),
    DocumentType.MRF: _with_core(
        {
            "approved": {"checking_stock", "cancelled"},
            "checking_stock": {"from_stock", "needs_purchase"},
            "from_stock": {"fulfilled"},
            "needs_purchase": {"fulfilled"},
            "fulfilled": set(),
        }
    ),
    DocumentType.SHIPMENT: _with_core(
        {
            "approved": {"in_transit", "cancelled"},
            "in_transit": {"at_port", "delivered"},
            "at_port": {"customs_clearance"},
            "customs_clearance": {"delivered"},
            "delivered": set(),
        }
    ),
}


def can_transition(entity_type: str, current: str, target: str) -> bool:
    """Whether a document of ``entity_type`` may move from ``current`` to ``target``.

    Unknown document types and unknown current statuses allow nothing.
    """
    try:
        table = STATUS_TRANSITIONS[DocumentType(entity_type)]
    except ValueError:
        return False
    return target in table.get(current, set())
