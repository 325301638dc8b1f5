"""Repository for the audit trail."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from flowline.storage.entities import AuditLog


class AuditRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        table_name: str,
        record_id: str,
        action: str,
        new_values: dict[str, Any] | None = None,
        old_values: dict[str, Any] | None = None,
        performed_by_id: str | None = None,
    ) -> AuditLog:
        """Append an audit entry."""
        entry = AuditLog(
            table_name=table_name,
            record_id=record_id,
            action=action,
            old_values=old_values,
            new_values=new_values,
            performed_by_id=performed_by_id,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry
