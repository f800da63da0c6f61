from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import create_access_token, get_password_hash
from app.models import User, UserRole, UserCondominium, Role
from app.services.condominiums import create_condominium

TEST_PASSWORD = "senha-segura-123"

# CPF/CNPJ com dígitos verificadores corretos
VALID_CPF = "529.982.247-25"
VALID_CNPJ = "11.222.333/0001-81"


async def make_user(
    db: AsyncSession,
    email: str,
    roles: List[Role],
    condominium_ids: Optional[List[str]] = None,
    password: str = TEST_PASSWORD
) -> User:
    """Cria usuário com papéis e vínculos com condomínios"""
    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=email.split("@")[0].title(),
        roles=[UserRole(role=role.value) for role in roles],
    )
    db.add(user)
    await db.flush()

    for condominium_id in condominium_ids or []:
        db.add(UserCondominium(user_id=user.id, condominium_id=condominium_id))
    await db.commit()
    return user


async def make_condominium(db: AsyncSession, owner: User, name: str = "Residencial Jardins", **kwargs):
    condominium = await create_condominium(db, owner_id=owner.id, name=name, **kwargs)
    await db.commit()
    return condominium


def auth_headers(user: User) -> dict:
    token = create_access_token(data={"sub": user.id, "email": user.email})
    return {"Authorization": f"Bearer {token}"}
