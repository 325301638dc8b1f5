"""Document number generation.

Numbers look like ``DR-2026-00042``: a per-type prefix, the calendar
year and a per-year running sequence.
"""

from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from flowline.exceptions import ValidationError

DOCUMENT_PREFIXES: dict[str, str] = {
    "qci": "QCI",
    "dr": "DR",
    "gate_pass": "GP",
    "wt": "WT",
    "grn": "GRN",
    "mi": "MI",
    "mrn": "MRN",
    "jo": "JO",
    "mrf": "MRF",
    "imsf": "IMSF",
}


def format_document_number(prefix: str, year: int, sequence: int) -> str:
    return f"{prefix}-{year}-{sequence:05d}"


async def generate_document_number(
    session: AsyncSession,
    document_type: str,
    now: datetime | None = None,
) -> str:
    """Allocate the next number for ``document_type``.

    Raises:
        ValidationError: If the document type has no prefix.
    """
    from flowline.dal.inventory import DocumentCounterRepository

    prefix = DOCUMENT_PREFIXES.get(document_type)
    if prefix is None:
        raise ValidationError(f"No document number prefix for '{document_type}'")

    year = (now or datetime.now(UTC)).year
    sequence = await DocumentCounterRepository(session).next_value(document_type, year)
    return format_document_number(prefix, year, sequence)
