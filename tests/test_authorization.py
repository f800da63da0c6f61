import pytest

from app.core.errors import PermissionDenied
from app.models import Role
from app.services.authorization import (
    Action,
    authorize,
    has_role,
    get_user_condominium_ids,
    accessible_condominium_ids
)
from tests.utils import make_condominium, make_user


@pytest.mark.asyncio
async def test_super_admin_can_do_everything(db_session, super_admin, condominium):
    for action in Action:
        await authorize(db_session, super_admin, action, condominium.id)

    assert await accessible_condominium_ids(db_session, super_admin) is None


@pytest.mark.asyncio
async def test_sindico_limited_to_own_condominium(db_session, sindico, condominium):
    other_owner = await make_user(db_session, "sindico@aurora.com.br", [Role.SINDICO])
    other = await make_condominium(db_session, other_owner, name="Edifício Aurora")

    await authorize(db_session, sindico, Action.VIEW_INVOICES, condominium.id)
    await authorize(db_session, sindico, "generate_pix", condominium.id)

    with pytest.raises(PermissionDenied) as exc_info:
        await authorize(db_session, sindico, Action.VIEW_INVOICES, other.id)
    assert exc_info.value.detail["condominium_id"] == other.id


@pytest.mark.asyncio
async def test_sindico_cannot_record_payment(db_session, sindico, condominium):
    with pytest.raises(PermissionDenied):
        await authorize(db_session, sindico, Action.RECORD_PAYMENT, condominium.id)


@pytest.mark.asyncio
async def test_porteiro_consumes_but_does_not_see_invoices(db_session, condominium):
    porteiro = await make_user(
        db_session, "portaria@jardins.com.br", [Role.PORTEIRO], condominium_ids=[condominium.id]
    )

    await authorize(db_session, porteiro, Action.CONSUME_QUOTA, condominium.id)
    with pytest.raises(PermissionDenied):
        await authorize(db_session, porteiro, Action.VIEW_INVOICES, condominium.id)


@pytest.mark.asyncio
async def test_morador_cannot_consume(db_session, condominium):
    morador = await make_user(
        db_session, "apto101@jardins.com.br", [Role.MORADOR], condominium_ids=[condominium.id]
    )

    await authorize(db_session, morador, Action.VIEW_CONDOMINIUM, condominium.id)
    with pytest.raises(PermissionDenied):
        await authorize(db_session, morador, Action.CONSUME_QUOTA, condominium.id)


@pytest.mark.asyncio
async def test_user_without_roles_is_denied(db_session, condominium):
    nobody = await make_user(db_session, "visitante@jardins.com.br", [])

    with pytest.raises(PermissionDenied):
        await authorize(db_session, nobody, Action.VIEW_PLANS)


@pytest.mark.asyncio
async def test_condominium_ids_include_owned_and_linked(db_session, sindico, condominium):
    other_owner = await make_user(db_session, "sindico@aurora.com.br", [Role.SINDICO])
    other = await make_condominium(db_session, other_owner, name="Edifício Aurora")
    multi = await make_user(
        db_session, "gestor@jardins.com.br", [Role.SINDICO, Role.PORTEIRO], condominium_ids=[other.id]
    )
    await make_condominium(db_session, multi, name="Vila Verde")

    ids = await get_user_condominium_ids(db_session, multi.id)

    assert len(ids) == 2
    assert other.id in ids
    assert condominium.id not in ids
    assert await get_user_condominium_ids(db_session, sindico.id) == [condominium.id]


@pytest.mark.asyncio
async def test_has_role(db_session, sindico):
    assert await has_role(db_session, sindico.id, Role.SINDICO)
    assert await has_role(db_session, sindico.id, "sindico")
    assert not await has_role(db_session, sindico.id, Role.SUPER_ADMIN)
