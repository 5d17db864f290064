"""Payment-date projection and month calendar layout.

Every function here is a pure function of its arguments. ``today`` defaults to
the wall clock at call time; pass it explicitly for reproducible output.
"""

import logging
from calendar import monthrange
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from dateutil.relativedelta import relativedelta

from moonwave.config import settings
from moonwave.schemas.calendar import (
    CalendarDay,
    CalendarGrid,
    CalendarWeek,
    EventSubscription,
    PaymentEvent,
    PaymentStats,
)

logger = logging.getLogger(__name__)

GRID_WEEKS = 6
WEEK_DAYS = 7

WEEKLY = "weekly"
MONTHLY = "monthly"
QUARTERLY = "quarterly"
YEARLY = "yearly"

# Month-based cycles -> months per step
CYCLE_MONTHS: dict[str, int] = {MONTHLY: 1, QUARTERLY: 3, YEARLY: 12}


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def _on_billing_day(year: int, month: int, billing_day: int) -> date:
    return date(year, month, min(billing_day, monthrange(year, month)[1]))


def resolve_cycle(cycle: str | None) -> str:
    """Return a known cycle name; anything unrecognised steps monthly."""
    if cycle == WEEKLY or cycle in CYCLE_MONTHS:
        return cycle
    logger.warning(f"Unknown payment cycle {cycle!r}, falling back to monthly")
    return MONTHLY


def next_billing_date(current: date, cycle: str | None, billing_day: int | None = None) -> date:
    """Advance ``current`` by one billing cycle.

    Month-based cycles land on ``billing_day`` (``current.day`` when not given),
    clamped to the last day of shorter months. The clamp does not carry over:
    day 31 goes Jan 31 -> Feb 28 -> Mar 31.
    """
    cycle = resolve_cycle(cycle)
    if cycle == WEEKLY:
        return current + timedelta(weeks=1)
    target = current + relativedelta(months=CYCLE_MONTHS[cycle])
    return _on_billing_day(target.year, target.month, billing_day or current.day)


def _first_occurrence(start: date, billing_day: int, cycle: str, month_start: date) -> date:
    # start is strictly before month_start here
    if cycle == WEEKLY:
        return month_start + timedelta(days=(start.weekday() - month_start.weekday()) % WEEK_DAYS)
    step = CYCLE_MONTHS[cycle]
    elapsed = (month_start.year - start.year) * 12 + month_start.month - start.month
    target = month_start + relativedelta(months=-elapsed % step)
    return _on_billing_day(target.year, target.month, billing_day)


def calculate_payment_dates(subscription: Any, month_start: date, month_end: date) -> list[date]:
    """All dates in ``[month_start, month_end]`` on which ``subscription`` bills.

    A start date inside the range is itself a payment date. A start date before
    it anchors the cycle. Month-based cycles bill on the billing day of months a
    whole number of steps after the start month, so quarterly and yearly plans
    do not bill in the months between steps (rather than billing every month
    from the billing day). Weekly cycles bill on the start date's weekday, not
    by stepping from the billing day.
    """
    start = subscription.start_date
    billing_day = subscription.payment_day
    if start > month_end:
        return []

    cycle = resolve_cycle(subscription.payment_cycle)
    if start >= month_start:
        current = start
    else:
        current = _first_occurrence(start, billing_day, cycle, month_start)

    dates: list[date] = []
    while current <= month_end:
        dates.append(current)
        current = next_billing_date(current, cycle, billing_day)
    return dates


def has_valid_billing_day(sub: Any) -> bool:
    return sub.payment_day is not None and 1 <= sub.payment_day <= 31


def partition_projectable(subscriptions: Iterable[Any]) -> tuple[list[Any], list[Any]]:
    """Split records into projectable ones and ones without a start date or a
    billing day in 1..31. Stored rows are not range-checked, so 0 or 32 can
    reach here and must not reach the date arithmetic.
    """
    projectable: list[Any] = []
    skipped: list[Any] = []
    for sub in subscriptions:
        if sub.start_date is None or not has_valid_billing_day(sub):
            skipped.append(sub)
        else:
            projectable.append(sub)
    return projectable, skipped


def normalize_amount(amount: Any, currency: str, exchange_rate: Any, display_currency: str) -> Decimal:
    amount = _to_decimal(amount)
    if currency == display_currency:
        return amount
    return amount * _to_decimal(exchange_rate)


def project_payment_events(
    subscriptions: Iterable[Any],
    year: int,
    month: int,
    exchange_rate: Any,
    *,
    display_currency: str | None = None,
    today: date | None = None,
) -> list[PaymentEvent]:
    """Payment events for every date in the month on which an active subscription bills.

    Subscriptions billing on the same date share one event whose total is the
    sum of their amounts in ``display_currency``; amounts in any other currency
    are multiplied by ``exchange_rate``. Events are sorted by date.
    """
    month_start, month_end = month_bounds(year, month)
    rate = _to_decimal(exchange_rate)
    if rate <= 0:
        raise ValueError(f"exchange_rate must be positive, got {exchange_rate}")
    display_currency = display_currency or settings.DISPLAY_CURRENCY
    today = today or date.today()

    active = [s for s in subscriptions if s.status == "active"]
    projectable, skipped = partition_projectable(active)
    for sub in skipped:
        logger.warning(f"Skipping subscription {sub.id}: missing start_date or invalid payment_day {sub.payment_day!r}")

    by_date: dict[date, list[Any]] = {}
    for sub in projectable:
        for payment_date in calculate_payment_dates(sub, month_start, month_end):
            by_date.setdefault(payment_date, []).append(sub)

    events: list[PaymentEvent] = []
    for payment_date, subs in sorted(by_date.items()):
        total = sum(
            (normalize_amount(s.amount, s.currency, rate, display_currency) for s in subs),
            Decimal("0"),
        )
        events.append(
            PaymentEvent(
                id=f"{subs[0].id}-{payment_date.isoformat()}",
                date=payment_date,
                subscriptions=[EventSubscription.model_validate(s, from_attributes=True) for s in subs],
                total_amount=total,
                currency=display_currency,
                is_today=payment_date == today,
                is_upcoming=payment_date > today,
                is_past=payment_date < today,
            )
        )
    return events


def project_range(
    subscriptions: Iterable[Any],
    start: date,
    end: date,
    exchange_rate: Any,
    *,
    display_currency: str | None = None,
    today: date | None = None,
) -> list[PaymentEvent]:
    """Payment events between ``start`` and ``end`` inclusive, across month boundaries."""
    subscriptions = list(subscriptions)
    events: list[PaymentEvent] = []
    month = date(start.year, start.month, 1)
    while month <= end:
        events.extend(
            project_payment_events(
                subscriptions,
                month.year,
                month.month,
                exchange_rate,
                display_currency=display_currency,
                today=today,
            )
        )
        month += relativedelta(months=1)
    return [e for e in events if start <= e.date <= end]


def build_calendar_grid(
    year: int,
    month: int,
    events: Iterable[PaymentEvent],
    *,
    today: date | None = None,
) -> CalendarGrid:
    """Lay out six Sunday-first weeks starting on the Sunday on or before the 1st."""
    first, _ = month_bounds(year, month)
    today = today or date.today()
    grid_start = first - timedelta(days=(first.weekday() + 1) % WEEK_DAYS)

    by_date: dict[date, list[PaymentEvent]] = {}
    for event in events:
        by_date.setdefault(event.date, []).append(event)

    weeks: list[CalendarWeek] = []
    for week in range(GRID_WEEKS):
        days: list[CalendarDay] = []
        for weekday in range(WEEK_DAYS):
            current = grid_start + timedelta(days=week * WEEK_DAYS + weekday)
            days.append(
                CalendarDay(
                    date=current,
                    events=by_date.get(current, []),
                    is_today=current == today,
                    is_current_month=current.year == year and current.month == month,
                    is_past=current < today,
                    is_weekend=current.weekday() >= 5,
                )
            )
        weeks.append(CalendarWeek(days=days))
    return CalendarGrid(year=year, month=month, weeks=weeks)


def week_bounds(today: date) -> tuple[date, date]:
    """Sunday and Saturday of the week containing ``today``."""
    start = today - timedelta(days=(today.weekday() + 1) % WEEK_DAYS)
    return start, start + timedelta(days=WEEK_DAYS - 1)


def get_today_payments(events: Iterable[PaymentEvent], today: date | None = None) -> list[PaymentEvent]:
    today = today or date.today()
    return [e for e in events if e.date == today]


def get_weekly_payments(events: Iterable[PaymentEvent], today: date | None = None) -> list[PaymentEvent]:
    start, end = week_bounds(today or date.today())
    return sorted((e for e in events if start <= e.date <= end), key=lambda e: e.date)


def get_upcoming_payments(
    events: Iterable[PaymentEvent], days: int = 7, today: date | None = None
) -> list[PaymentEvent]:
    """Events after today and no later than ``days`` days from now."""
    today = today or date.today()
    cutoff = today + timedelta(days=days)
    return sorted((e for e in events if today < e.date <= cutoff), key=lambda e: e.date)


def calculate_monthly_total(events: Iterable[PaymentEvent]) -> Decimal:
    return sum((e.total_amount for e in events), Decimal("0"))


def calculate_payment_stats(events: Sequence[PaymentEvent], today: date | None = None) -> PaymentStats:
    today = today or date.today()
    monthly = [e for e in events if e.date.year == today.year and e.date.month == today.month]
    upcoming = [e for e in events if e.date > today]
    past = [e for e in events if e.date < today]
    return PaymentStats(
        total=len(events),
        monthly=len(monthly),
        upcoming=len(upcoming),
        past=len(past),
        monthly_total=calculate_monthly_total(monthly),
        upcoming_total=calculate_monthly_total(upcoming),
        past_total=calculate_monthly_total(past),
    )


def separate_amounts_by_currency(
    events: Iterable[PaymentEvent],
    exchange_rate: Any,
    display_currency: str | None = None,
) -> dict[str, Decimal]:
    """Display-currency contribution of each original currency."""
    display_currency = display_currency or settings.DISPLAY_CURRENCY
    amounts: dict[str, Decimal] = {}
    for event in events:
        for sub in event.subscriptions:
            amount = normalize_amount(sub.amount, sub.currency, exchange_rate, display_currency)
            amounts[sub.currency] = amounts.get(sub.currency, Decimal("0")) + amount
    return amounts
