"""
Condo Billing - User Preferences
Ordenação preferida da lista de faturas, por usuário
"""
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.config import settings
from app.models import UserPreference
from app.services.invoices import SORTABLE_FIELDS

SORT_DIRECTIONS = ("asc", "desc")


async def _get_record(db: AsyncSession, user_id: str) -> Optional[UserPreference]:
    result = await db.execute(select(UserPreference).where(UserPreference.user_id == user_id))
    return result.scalar_one_or_none()


async def get_invoice_sort(db: AsyncSession, user_id: str) -> Tuple[str, str]:
    """(campo, direção) do usuário; sem registro usa o padrão da configuração"""
    record = await _get_record(db, user_id)
    field = record.invoice_sort_field if record and record.invoice_sort_field else None
    direction = record.invoice_sort_direction if record and record.invoice_sort_direction else None
    return (
        field or settings.DEFAULT_INVOICE_SORT_FIELD,
        direction or settings.DEFAULT_INVOICE_SORT_DIRECTION,
    )


async def update_invoice_sort(
    db: AsyncSession,
    user_id: str,
    field: Optional[str] = None,
    direction: Optional[str] = None
) -> Tuple[str, str]:
    if field is not None and field not in SORTABLE_FIELDS:
        raise ValueError(f"Campo de ordenação inválido: {field}")
    if direction is not None and direction not in SORT_DIRECTIONS:
        raise ValueError(f"Direção de ordenação inválida: {direction}")

    record = await _get_record(db, user_id)
    if not record:
        record = UserPreference(user_id=user_id)
        db.add(record)

    if field is not None:
        record.invoice_sort_field = field
    if direction is not None:
        record.invoice_sort_direction = direction

    await db.flush()
    return await get_invoice_sort(db, user_id)
