from datetime import date, timedelta
from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from moonwave.config import settings
from moonwave.db import get_db
from moonwave.models.subscription import Subscription
from moonwave.schemas.dashboard import DashboardSummary
from moonwave.services.auth import get_current_user_id
from moonwave.services.calendar import (
    calculate_monthly_total,
    calculate_payment_stats,
    get_today_payments,
    get_upcoming_payments,
    get_weekly_payments,
    normalize_amount,
    project_payment_events,
    project_range,
    separate_amounts_by_currency,
    week_bounds,
)
from moonwave.services.exchange_rate import convert_currency, get_or_create_rate

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def monthly_amount(amount: Decimal, payment_cycle: str) -> Decimal:
    if payment_cycle == "monthly":
        return amount
    if payment_cycle == "yearly":
        return amount / 12
    if payment_cycle == "weekly":
        return amount * Decimal("4.33")
    if payment_cycle == "quarterly":
        return amount / 3
    return amount


def summarize(subs: list, exchange_rate: Decimal, today: date | None = None) -> DashboardSummary:
    today = today or date.today()
    currency = settings.DISPLAY_CURRENCY
    active = [s for s in subs if s.status == "active"]

    monthly_cost = sum(
        (monthly_amount(normalize_amount(s.amount, s.currency, exchange_rate, currency), s.payment_cycle) for s in active),
        Decimal("0"),
    )
    total_krw = sum((s.amount for s in active if s.currency == "KRW"), Decimal("0"))
    total_usd = sum((s.amount for s in active if s.currency == "USD"), Decimal("0"))

    month_events = project_payment_events(active, today.year, today.month, exchange_rate, today=today)
    # The current week can spill into the neighbouring months
    week_start, week_end = week_bounds(today)
    week_events = project_range(active, week_start, week_end, exchange_rate, today=today)
    upcoming_events = project_range(active, today, today + timedelta(days=7), exchange_rate, today=today)
    return DashboardSummary(
        total_subscriptions=len(subs),
        active_count=len(active),
        monthly_cost=monthly_cost,
        monthly_cost_usd=convert_currency(monthly_cost, currency, "USD", exchange_rate),
        average_cost=monthly_cost / len(active) if active else Decimal("0"),
        total_cost_krw=total_krw,
        total_cost_usd=total_usd,
        currency=currency,
        exchange_rate=exchange_rate,
        month_total=calculate_monthly_total(month_events),
        month_total_by_currency=separate_amounts_by_currency(month_events, exchange_rate, currency),
        stats=calculate_payment_stats(month_events, today=today),
        today_payments=get_today_payments(month_events, today=today),
        weekly_payments=get_weekly_payments(week_events, today=today),
        upcoming_payments=get_upcoming_payments(upcoming_events, today=today),
    )


@router.get("/summary", response_model=DashboardSummary)
async def get_summary(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    result = await db.execute(select(Subscription).where(Subscription.user_id == user_id))
    subs = list(result.scalars().all())
    rate = await get_or_create_rate(db, user_id)
    return summarize(subs, rate.usd_krw)
