from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from moonwave.config import settings
from moonwave.db import get_db
from moonwave.models.subscription import Subscription
from moonwave.schemas.calendar import (
    MAX_YEAR,
    MIN_YEAR,
    CalendarMonth,
    PaymentEvent,
    ProjectionRequest,
)
from moonwave.services.auth import get_current_user_id
from moonwave.services.calendar import (
    build_calendar_grid,
    calculate_monthly_total,
    get_upcoming_payments,
    partition_projectable,
    project_payment_events,
    project_range,
)
from moonwave.services.exchange_rate import get_or_create_rate
from moonwave.services.formatting import format_month_name

router = APIRouter(prefix="/calendar", tags=["calendar"])


def build_calendar_month(
    subscriptions: Sequence[Any],
    year: int,
    month: int,
    exchange_rate: Decimal,
    today: date | None = None,
) -> CalendarMonth:
    _, skipped = partition_projectable(s for s in subscriptions if s.status == "active")
    events = project_payment_events(subscriptions, year, month, exchange_rate, today=today)
    return CalendarMonth(
        year=year,
        month=month,
        label=format_month_name(year, month),
        currency=settings.DISPLAY_CURRENCY,
        exchange_rate=exchange_rate,
        events=events,
        total_amount=calculate_monthly_total(events),
        grid=build_calendar_grid(year, month, events, today=today),
        skipped_subscription_ids=[s.id for s in skipped],
    )


async def _user_subscriptions(db: AsyncSession, user_id: str) -> list[Subscription]:
    result = await db.execute(select(Subscription).where(Subscription.user_id == user_id))
    return list(result.scalars().all())


@router.post("/project", response_model=CalendarMonth)
async def project_calendar(
    body: ProjectionRequest,
    _: str = Depends(get_current_user_id),
):
    return build_calendar_month(body.subscriptions, body.year, body.month, body.exchange_rate)


@router.get("/upcoming", response_model=list[PaymentEvent])
async def get_upcoming(
    days: int = Query(default=7, ge=0, le=366),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    subs = await _user_subscriptions(db, user_id)
    rate = await get_or_create_rate(db, user_id)
    today = date.today()
    events = project_range(subs, today, today + timedelta(days=days), rate.usd_krw, today=today)
    return get_upcoming_payments(events, days=days, today=today)


@router.get("/{year}/{month}", response_model=CalendarMonth)
async def get_calendar_month(
    year: int = Path(ge=MIN_YEAR, le=MAX_YEAR),
    month: int = Path(ge=1, le=12),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    subs = await _user_subscriptions(db, user_id)
    rate = await get_or_create_rate(db, user_id)
    return build_calendar_month(subs, year, month, rate.usd_krw)
