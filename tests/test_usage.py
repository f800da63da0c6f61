import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.errors import QuotaExceeded, PeriodExpired, SubscriptionInactive, NoSubscriptionFound
from app.database import Base
from app.models import Role, ResourceKind, Subscription
from app.services.plans import ensure_plans_exist
from app.services.subscriptions import get_subscription, change_plan, set_active, set_lifetime
from app.services.usage import consume_quota, get_usage_summary, add_package_notification_credits
from app.utils.dates import utcnow
from tests.utils import make_user, make_condominium


@pytest.mark.asyncio
async def test_start_plan_rejects_eleventh_notification(db_session, condominium):
    for expected_remaining in range(9, -1, -1):
        remaining = await consume_quota(db_session, condominium.id, ResourceKind.NOTIFICATION)
        assert remaining == expected_remaining

    with pytest.raises(QuotaExceeded) as exc:
        await consume_quota(db_session, condominium.id, "notification")

    assert exc.value.detail["used"] == 10
    assert exc.value.detail["limit"] == 10
    assert exc.value.detail["requested"] == 1

    subscription = await get_subscription(db_session, condominium.id)
    assert subscription.notifications_used == 10


@pytest.mark.asyncio
async def test_batch_that_does_not_fit_changes_nothing(db_session, condominium):
    await consume_quota(db_session, condominium.id, ResourceKind.WARNING, amount=8)

    with pytest.raises(QuotaExceeded):
        await consume_quota(db_session, condominium.id, ResourceKind.WARNING, amount=3)

    subscription = await get_subscription(db_session, condominium.id)
    assert subscription.warnings_used == 8
    assert await consume_quota(db_session, condominium.id, ResourceKind.WARNING, amount=2) == 0


@pytest.mark.asyncio
async def test_zero_limit_resource_is_blocked(db_session, condominium):
    # Plano start não inclui multas
    with pytest.raises(QuotaExceeded):
        await consume_quota(db_session, condominium.id, ResourceKind.FINE)


@pytest.mark.asyncio
async def test_invalid_amount(db_session, condominium):
    with pytest.raises(ValueError):
        await consume_quota(db_session, condominium.id, ResourceKind.NOTIFICATION, amount=0)


@pytest.mark.asyncio
async def test_package_extra_credits_extend_capacity(db_session, condominium):
    cost = await add_package_notification_credits(db_session, condominium.id, 5)
    assert str(cost) == "0.50"

    remaining = await consume_quota(db_session, condominium.id, ResourceKind.PACKAGE_NOTIFICATION, amount=25)
    assert remaining == 0

    with pytest.raises(QuotaExceeded) as exc:
        await consume_quota(db_session, condominium.id, ResourceKind.PACKAGE_NOTIFICATION)
    assert exc.value.detail["extra"] == 5


@pytest.mark.asyncio
async def test_unlimited_limit_skips_check(db_session, condominium):
    await change_plan(db_session, condominium.id, "enterprise")

    remaining = await consume_quota(db_session, condominium.id, ResourceKind.PACKAGE_NOTIFICATION, amount=5000)

    assert remaining is None
    subscription = await get_subscription(db_session, condominium.id)
    assert subscription.package_notifications_used == 5000


@pytest.mark.asyncio
async def test_lifetime_skips_capacity_and_period_but_counts(db_session, condominium):
    await set_lifetime(db_session, condominium.id, True)
    subscription = await get_subscription(db_session, condominium.id)
    subscription.current_period_end = utcnow() - timedelta(days=30)
    await db_session.commit()

    remaining = await consume_quota(db_session, condominium.id, ResourceKind.NOTIFICATION, amount=50)

    assert remaining is None
    subscription = await get_subscription(db_session, condominium.id)
    assert subscription.notifications_used == 50


@pytest.mark.asyncio
async def test_expired_period_is_rejected(db_session, condominium):
    subscription = await get_subscription(db_session, condominium.id)
    subscription.current_period_end = utcnow() - timedelta(minutes=1)
    await db_session.commit()

    with pytest.raises(PeriodExpired):
        await consume_quota(db_session, condominium.id, ResourceKind.NOTIFICATION)

    subscription = await get_subscription(db_session, condominium.id)
    assert subscription.notifications_used == 0


@pytest.mark.asyncio
async def test_missing_period_end_counts_as_expired(db_session, condominium):
    subscription = await get_subscription(db_session, condominium.id)
    subscription.current_period_end = None
    await db_session.commit()

    with pytest.raises(PeriodExpired):
        await consume_quota(db_session, condominium.id, ResourceKind.NOTIFICATION)


@pytest.mark.asyncio
async def test_paused_subscription_is_rejected(db_session, condominium):
    await set_active(db_session, condominium.id, False)

    with pytest.raises(SubscriptionInactive):
        await consume_quota(db_session, condominium.id, ResourceKind.NOTIFICATION)


@pytest.mark.asyncio
async def test_unknown_condominium(db_session):
    with pytest.raises(NoSubscriptionFound):
        await consume_quota(db_session, "00000000-0000-0000-0000-000000000000", ResourceKind.NOTIFICATION)

    with pytest.raises(NoSubscriptionFound):
        await add_package_notification_credits(db_session, "00000000-0000-0000-0000-000000000000", 1)


@pytest.mark.asyncio
async def test_usage_summary(db_session, condominium):
    await consume_quota(db_session, condominium.id, ResourceKind.NOTIFICATION, amount=4)

    summary = await get_usage_summary(db_session, condominium.id)

    assert summary["notification"] == {
        "used": 4,
        "limit": 10,
        "extra": 0,
        "remaining": 6,
        "percentage": 40.0,
        "unlimited": False,
    }
    assert summary["fine"]["percentage"] == 100.0
    assert set(summary) == {"notification", "warning", "fine", "package_notification"}


@pytest.mark.asyncio
async def test_concurrent_consumption_never_exceeds_limit(tmp_path):
    """Requisições simultâneas: só passam as que cabem no limite"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'usage.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    async with factory() as db:
        await ensure_plans_exist(db)
        await db.commit()
        owner = await make_user(db, "sindico@concorrencia.com.br", [Role.SINDICO])
        condominium = await make_condominium(db, owner)
        condominium_id = condominium.id

    async def attempt():
        async with factory() as db:
            try:
                await consume_quota(db, condominium_id, ResourceKind.NOTIFICATION)
                await db.commit()
                return True
            except QuotaExceeded:
                await db.rollback()
                return False

    results = await asyncio.gather(*(attempt() for _ in range(14)))

    async with factory() as db:
        result = await db.execute(
            select(Subscription.notifications_used).where(Subscription.condominium_id == condominium_id)
        )
        used = result.scalar_one()

    await engine.dispose()

    assert results.count(True) == 10
    assert used == 10
