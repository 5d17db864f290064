import logging
from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from moonwave.config import settings
from moonwave.models.exchange_rate import ExchangeRate
from moonwave.models.notification_preference import NotificationPreference
from moonwave.models.subscription import Subscription
from moonwave.services.calendar import (
    has_valid_billing_day,
    next_billing_date,
    project_payment_events,
    project_range,
    resolve_cycle,
)
from moonwave.services.notification import (
    REMINDER_COLOR,
    SUMMARY_COLOR,
    build_monthly_summary,
    build_reminder,
    send_discord_webhook,
)

logger = logging.getLogger(__name__)


async def advance_next_payment_dates(db: AsyncSession, today: date | None = None) -> int:
    """Roll overdue ``next_payment_date`` values forward to today or later."""
    today = today or date.today()
    result = await db.execute(
        select(Subscription)
        .where(Subscription.status == "active")
        .where(Subscription.next_payment_date < today)
    )
    subs = result.scalars().all()
    for sub in subs:
        cycle = resolve_cycle(sub.payment_cycle)
        billing_day = sub.payment_day if has_valid_billing_day(sub) else None
        current = sub.next_payment_date
        while current < today:
            current = next_billing_date(current, cycle, billing_day)
        sub.next_payment_date = current
    await db.commit()
    return len(subs)


async def _active_subscriptions_by_user(db: AsyncSession) -> dict[str, list[Subscription]]:
    result = await db.execute(
        select(Subscription).where(Subscription.status == "active").order_by(Subscription.user_id)
    )
    by_user: dict[str, list[Subscription]] = {}
    for sub in result.scalars().all():
        by_user.setdefault(sub.user_id, []).append(sub)
    return by_user


async def _preferences(db: AsyncSession, user_ids: Sequence[str]) -> dict[str, NotificationPreference]:
    result = await db.execute(
        select(NotificationPreference).where(NotificationPreference.user_id.in_(user_ids))
    )
    return {p.user_id: p for p in result.scalars().all()}


async def _rates(db: AsyncSession, user_ids: Sequence[str]) -> dict[str, Decimal]:
    result = await db.execute(select(ExchangeRate).where(ExchangeRate.user_id.in_(user_ids)))
    return {r.user_id: r.usd_krw for r in result.scalars().all()}


async def send_payment_reminders(db: AsyncSession, webhook_url: str, today: date | None = None) -> int:
    """Post one reminder per user with payments due in the next ``REMINDER_DAYS`` days."""
    today = today or date.today()
    end = today + timedelta(days=settings.REMINDER_DAYS)
    subs_by_user = await _active_subscriptions_by_user(db)
    if not subs_by_user:
        return 0
    prefs = await _preferences(db, list(subs_by_user))
    rates = await _rates(db, list(subs_by_user))

    notified = 0
    for user_id, subs in subs_by_user.items():
        pref = prefs.get(user_id)
        if pref is not None and not pref.payment_reminders:
            continue
        rate = rates.get(user_id, settings.DEFAULT_EXCHANGE_RATE)
        events = project_range(subs, today, end, rate, today=today)
        if not events:
            continue
        title, description = build_reminder(events, today=today)
        if await send_discord_webhook(webhook_url, title, description, color=REMINDER_COLOR):
            notified += 1
    logger.info(f"Payment reminders sent to {notified} user(s)")
    return notified


async def send_monthly_summaries(db: AsyncSession, webhook_url: str, today: date | None = None) -> int:
    """On the first of the month, post each opted-in user's projected month total."""
    today = today or date.today()
    if today.day != 1:
        return 0
    subs_by_user = await _active_subscriptions_by_user(db)
    if not subs_by_user:
        return 0
    prefs = await _preferences(db, list(subs_by_user))
    rates = await _rates(db, list(subs_by_user))

    notified = 0
    for user_id, subs in subs_by_user.items():
        pref = prefs.get(user_id)
        if pref is not None and not pref.monthly_summary:
            continue
        rate = rates.get(user_id, settings.DEFAULT_EXCHANGE_RATE)
        events = project_payment_events(subs, today.year, today.month, rate, today=today)
        if not events:
            continue
        title, description = build_monthly_summary(today.year, today.month, events)
        if await send_discord_webhook(webhook_url, title, description, color=SUMMARY_COLOR):
            notified += 1
    logger.info(f"Monthly summaries sent to {notified} user(s)")
    return notified
