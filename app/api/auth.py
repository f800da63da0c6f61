"""
Condo Billing - Auth API
Autenticação de usuários e preferências pessoais
"""
from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.database import get_db
from app.models import User, UserRole, Role
from app.schemas import (
    LoginRequest,
    LoginResponse,
    UserResponse,
    InvoiceSortPreference,
    InvoiceSortPreferenceUpdate
)
from app.core import (
    verify_password,
    get_password_hash,
    create_access_token,
    verify_access_token,
    settings
)
from app.services.authorization import get_user_condominium_ids
from app.services.preferences import get_invoice_sort, update_invoice_sort
from app.utils.dates import utcnow

router = APIRouter(prefix="/auth", tags=["Authentication"])
security = HTTPBearer()

# Rate limiting por IP (login)
limiter = Limiter(key_func=get_remote_address)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Dependency para obter usuário autenticado"""
    token = credentials.credentials
    payload = verify_access_token(token)

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido ou expirado"
        )

    result = await db.execute(
        select(User).where(User.id == payload.get("sub"))
    )
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuário não encontrado ou inativo"
        )

    return user


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
async def login(request: Request, credentials: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Login por e-mail e senha"""
    result = await db.execute(
        select(User).where(User.email == credentials.email)
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="E-mail ou senha inválidos"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Conta desativada"
        )

    # Atualiza último login
    user.last_login_at = utcnow()
    await db.flush()

    access_token = create_access_token(
        data={"sub": user.id, "email": user.email},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        user=user.to_dict()
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Retorna dados do usuário atual com seus condomínios"""
    return {
        **user.to_dict(),
        "condominium_ids": await get_user_condominium_ids(db, user.id),
    }


@router.post("/setup")
async def initial_setup(db: AsyncSession = Depends(get_db)):
    """Setup inicial - cria o super admin padrão se não existir"""
    result = await db.execute(
        select(UserRole).where(UserRole.role == Role.SUPER_ADMIN.value).limit(1)
    )
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Setup já realizado"
        )

    user = User(
        email=settings.ADMIN_EMAIL,
        hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
        full_name="Administrador",
        roles=[UserRole(role=Role.SUPER_ADMIN.value)]
    )
    db.add(user)
    await db.flush()

    return {"message": "Setup concluído", "email": settings.ADMIN_EMAIL}


@router.get("/me/preferences", response_model=InvoiceSortPreference)
async def get_preferences(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    field, direction = await get_invoice_sort(db, user.id)
    return InvoiceSortPreference(invoice_sort_field=field, invoice_sort_direction=direction)


@router.put("/me/preferences", response_model=InvoiceSortPreference)
async def put_preferences(
    request: InvoiceSortPreferenceUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    field, direction = await update_invoice_sort(
        db,
        user.id,
        field=request.invoice_sort_field,
        direction=request.invoice_sort_direction
    )
    return InvoiceSortPreference(invoice_sort_field=field, invoice_sort_direction=direction)
