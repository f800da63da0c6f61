"""
Condo Billing - Authorization
Tabela de permissões por ação. Todo endpoint passa por authorize();
nenhum outro módulo compara nomes de papéis.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.errors import PermissionDenied
from app.models import User, UserRole, UserCondominium, Condominium, Role

logger = logging.getLogger(__name__)


class Action(str, Enum):
    VIEW_PLANS = "view_plans"
    EDIT_PLANS = "edit_plans"
    CREATE_CONDOMINIUM = "create_condominium"
    VIEW_CONDOMINIUM = "view_condominium"
    VIEW_SUBSCRIPTION = "view_subscription"
    CONSUME_QUOTA = "consume_quota"
    MANAGE_SUBSCRIPTION = "manage_subscription"
    ADD_PACKAGE_CREDITS = "add_package_credits"
    END_TRIAL = "end_trial"
    VIEW_INVOICES = "view_invoices"
    CREATE_INVOICE = "create_invoice"
    RECORD_PAYMENT = "record_payment"
    GENERATE_PIX = "generate_pix"
    RUN_ROLLOVER = "run_rollover"


@dataclass(frozen=True)
class Policy:
    roles: FrozenSet[Role]
    # Exige vínculo com o condomínio informado
    requires_membership: bool = False


_ALL = frozenset(Role)
_SUPER = frozenset({Role.SUPER_ADMIN})
_SINDICO = frozenset({Role.SINDICO})
_STAFF = frozenset({Role.SINDICO, Role.PORTEIRO})

POLICIES = {
    Action.VIEW_PLANS: Policy(_ALL),
    Action.EDIT_PLANS: Policy(_SUPER),
    Action.CREATE_CONDOMINIUM: Policy(_SINDICO),
    Action.VIEW_CONDOMINIUM: Policy(_ALL, requires_membership=True),
    Action.VIEW_SUBSCRIPTION: Policy(_STAFF, requires_membership=True),
    Action.CONSUME_QUOTA: Policy(_STAFF, requires_membership=True),
    Action.MANAGE_SUBSCRIPTION: Policy(_SUPER),
    Action.ADD_PACKAGE_CREDITS: Policy(_SUPER),
    Action.END_TRIAL: Policy(_SINDICO, requires_membership=True),
    Action.VIEW_INVOICES: Policy(_SINDICO, requires_membership=True),
    Action.CREATE_INVOICE: Policy(_SUPER),
    Action.RECORD_PAYMENT: Policy(_SUPER),
    Action.GENERATE_PIX: Policy(_SINDICO, requires_membership=True),
    Action.RUN_ROLLOVER: Policy(_SUPER),
}


async def get_user_roles(db: AsyncSession, user_id: str) -> Set[Role]:
    result = await db.execute(select(UserRole.role).where(UserRole.user_id == user_id))
    roles = set()
    for value in result.scalars().all():
        try:
            roles.add(Role(value))
        except ValueError:
            logger.warning(f"Papel desconhecido ignorado: {value} (usuário {user_id})")
    return roles


async def has_role(db: AsyncSession, user_id: str, role: Role) -> bool:
    result = await db.execute(
        select(UserRole.id).where(
            UserRole.user_id == user_id,
            UserRole.role == Role(role).value
        )
    )
    return result.first() is not None


async def get_user_condominium_ids(db: AsyncSession, user_id: str) -> List[str]:
    """Condomínios do usuário: os que administra como síndico e os vinculados"""
    owned = await db.execute(select(Condominium.id).where(Condominium.owner_id == user_id))
    linked = await db.execute(
        select(UserCondominium.condominium_id).where(UserCondominium.user_id == user_id)
    )
    ids = set(owned.scalars().all()) | set(linked.scalars().all())
    return sorted(ids)


async def accessible_condominium_ids(db: AsyncSession, user: User) -> Optional[List[str]]:
    """Escopo de listagem: None para o super admin (todos)"""
    if await has_role(db, user.id, Role.SUPER_ADMIN):
        return None
    return await get_user_condominium_ids(db, user.id)


async def authorize(
    db: AsyncSession,
    user: User,
    action: Action,
    condominium_id: Optional[str] = None
) -> None:
    """
    Levanta PermissionDenied se o usuário não puder executar a ação.

    Sem condominium_id, ações de escopo por condomínio apenas checam o papel;
    o chamador deve restringir a consulta com get_user_condominium_ids.
    """
    action = Action(action)
    roles = await get_user_roles(db, user.id)
    if Role.SUPER_ADMIN in roles:
        return

    policy = POLICIES[action]
    if not roles & policy.roles:
        logger.warning(f"Acesso negado: usuário {user.id} ação={action.value} papéis={sorted(r.value for r in roles)}")
        raise PermissionDenied(action=action.value)

    if policy.requires_membership and condominium_id is not None:
        if condominium_id not in await get_user_condominium_ids(db, user.id):
            logger.warning(f"Acesso negado: usuário {user.id} sem vínculo com condomínio {condominium_id}")
            raise PermissionDenied(action=action.value, condominium_id=condominium_id)
