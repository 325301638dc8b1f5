"""Unit tests for the create_follow_up action."""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from flowline.actions.follow_up import FOLLOW_UP_CHAINS, create_follow_up
from flowline.events import SystemEvent
from flowline.exceptions import NotFoundError, ValidationError
from tests.helpers.db import make_session


def _event(entity_type: str, entity_id: str = "src-1") -> SystemEvent:
    return SystemEvent(
        type="document:status_changed",
        entity_type=entity_type,
        entity_id=entity_id,
        action="status_change",
        performed_by_id="user-1",
    )


def _repo() -> MagicMock:
    repo = MagicMock()
    for name in (
        "get_grn",
        "get_qci",
        "get_mi_with_lines",
        "get_imsf_with_lines",
        "first_project_warehouse",
        "find_dr_for_grn",
        "create_qci",
        "create_dr",
        "create_gate_pass",
        "create_stock_transfer",
    ):
        setattr(repo, name, AsyncMock(return_value=SimpleNamespace(id=f"new-{name}")))
    return repo


async def _run(params, event, repo, number="NUM-2026-00001"):
    session = make_session()
    with (
        patch("flowline.storage.get_committing_session", return_value=session),
        patch("flowline.dal.follow_ups.FollowUpRepository", return_value=repo),
        patch(
            "flowline.services.numbering.generate_document_number",
            AsyncMock(return_value=number),
        ) as numbering,
    ):
        await create_follow_up(params, event)
    return numbering


class TestCreateFollowUp:
    async def test_requires_target(self):
        with pytest.raises(ValidationError):
            await create_follow_up({}, _event("mrrv"))

    async def test_unsupported_chain_is_ignored(self):
        repo = _repo()
        await _run({"targetDocType": "shipment"}, _event("mrrv"), repo)
        repo.get_grn.assert_not_awaited()

    def test_aliases_share_chains(self):
        assert FOLLOW_UP_CHAINS[("mrrv", "qci")] is FOLLOW_UP_CHAINS[("mrrv", "rfim")]
        assert FOLLOW_UP_CHAINS[("rfim", "dr")] is FOLLOW_UP_CHAINS[("rfim", "osd")]
        assert FOLLOW_UP_CHAINS[("imsf", "wt")] is FOLLOW_UP_CHAINS[("imsf", "stock_transfer")]

    async def test_grn_to_qci(self):
        repo = _repo()
        repo.get_grn.return_value = SimpleNamespace(id="grn-1", mrrv_number="GRN-2026-00010")
        numbering = await _run({"targetDocType": "qci"}, _event("mrrv"), repo, "QCI-2026-00003")

        assert numbering.await_args.args[1] == "qci"
        kwargs = repo.create_qci.await_args.kwargs
        assert kwargs["rfim_number"] == "QCI-2026-00003"
        assert kwargs["mrrv_id"] == "grn-1"
        assert kwargs["status"] == "pending"
        assert "GRN-2026-00010" in kwargs["comments"]
        assert kwargs["created_by_id"] == "user-1"

    async def test_missing_source_is_reraised(self):
        repo = _repo()
        repo.get_grn.return_value = None
        with pytest.raises(NotFoundError):
            await _run({"targetDocType": "qci"}, _event("mrrv"), repo)

    async def test_qci_to_dr(self):
        repo = _repo()
        repo.get_qci.return_value = SimpleNamespace(id="qci-1", mrrv_id="grn-1")
        repo.find_dr_for_grn.return_value = None
        await _run({"targetDocType": "dr"}, _event("rfim"), repo)

        kwargs = repo.create_dr.await_args.kwargs
        assert kwargs["mrrv_id"] == "grn-1"
        assert kwargs["report_types"] == ["quality_failure"]
        assert kwargs["status"] == "draft"

    async def test_qci_without_grn(self):
        repo = _repo()
        repo.get_qci.return_value = SimpleNamespace(id="qci-1", mrrv_id=None)
        with pytest.raises(ValidationError):
            await _run({"targetDocType": "osd"}, _event("rfim"), repo)

    async def test_existing_dr_is_not_duplicated(self):
        repo = _repo()
        repo.get_grn.return_value = SimpleNamespace(id="grn-1", mrrv_number="GRN-1")
        repo.find_dr_for_grn.return_value = SimpleNamespace(id="dr-1")
        numbering = await _run({"targetDocType": "dr"}, _event("mrrv"), repo)

        repo.create_dr.assert_not_awaited()
        numbering.assert_not_awaited()

    async def test_grn_to_dr_reports_damage(self):
        repo = _repo()
        repo.get_grn.return_value = SimpleNamespace(id="grn-1", mrrv_number="GRN-1")
        repo.find_dr_for_grn.return_value = None
        await _run({"targetDocType": "osd"}, _event("mrrv"), repo)
        assert repo.create_dr.await_args.kwargs["report_types"] == ["damage"]

    async def test_mi_to_gate_pass_copies_lines(self):
        repo = _repo()
        repo.get_mi_with_lines.return_value = SimpleNamespace(
            id="mi-1",
            project_id="prj-1",
            warehouse_id="wh-1",
            lines=[
                SimpleNamespace(
                    item_id="item-1",
                    qty_issued=Decimal("4"),
                    qty_requested=Decimal("5"),
                    item=SimpleNamespace(uom_id="uom-ea"),
                ),
                SimpleNamespace(
                    item_id="item-2", qty_issued=None, qty_requested=Decimal("2"), item=None
                ),
            ],
        )
        await _run({"targetDocType": "gate_pass"}, _event("mirv"), repo, "GP-2026-00001")

        items, = repo.create_gate_pass.await_args.args
        assert items == [
            {"item_id": "item-1", "quantity": Decimal("4"), "uom_id": "uom-ea"},
            {"item_id": "item-2", "quantity": Decimal("2"), "uom_id": None},
        ]
        kwargs = repo.create_gate_pass.await_args.kwargs
        assert kwargs["gate_pass_number"] == "GP-2026-00001"
        assert kwargs["pass_type"] == "outbound"
        assert kwargs["mirv_id"] == "mi-1"
        assert kwargs["status"] == "draft"

    async def test_imsf_to_wt(self):
        repo = _repo()
        repo.get_imsf_with_lines.return_value = SimpleNamespace(
            id="imsf-1",
            imsf_number="IMSF-2026-00002",
            sender_project_id="prj-a",
            receiver_project_id="prj-b",
            created_by_id="creator",
            lines=[SimpleNamespace(item_id="item-1", qty=Decimal("3"), uom_id="uom-ea")],
        )
        repo.first_project_warehouse.side_effect = ["wh-a", "wh-b"]
        await _run({"targetDocType": "wt"}, _event("imsf"), repo, "WT-2026-00001")

        lines, = repo.create_stock_transfer.await_args.args
        assert lines == [{"item_id": "item-1", "quantity": Decimal("3"), "uom_id": "uom-ea"}]
        kwargs = repo.create_stock_transfer.await_args.kwargs
        assert kwargs["from_warehouse_id"] == "wh-a"
        assert kwargs["to_warehouse_id"] == "wh-b"
        assert kwargs["transfer_type"] == "project_to_project"
        assert kwargs["requested_by_id"] == "user-1"

    async def test_imsf_without_warehouse(self):
        repo = _repo()
        repo.get_imsf_with_lines.return_value = SimpleNamespace(
            id="imsf-1",
            imsf_number="IMSF-1",
            sender_project_id="prj-a",
            receiver_project_id="prj-b",
            created_by_id=None,
            lines=[],
        )
        repo.first_project_warehouse.side_effect = ["wh-a", None]
        with pytest.raises(ValidationError, match="no assigned warehouse"):
            await _run({"targetDocType": "stock_transfer"}, _event("imsf"), repo)
        repo.create_stock_transfer.assert_not_awaited()
