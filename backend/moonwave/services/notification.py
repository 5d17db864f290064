import logging
from collections.abc import Sequence
from datetime import date

import httpx

from moonwave.schemas.calendar import PaymentEvent
from moonwave.services.calendar import calculate_monthly_total
from moonwave.services.formatting import (
    format_amount,
    format_month_name,
    format_relative_date,
    get_service_icon,
)

logger = logging.getLogger(__name__)

REMINDER_COLOR = 0xFBBF24
SUMMARY_COLOR = 0x6366F1


def describe_events(events: Sequence[PaymentEvent], today: date | None = None) -> str:
    lines = []
    for event in events:
        names = ", ".join(
            f"{get_service_icon(s.service_name)['icon']} {s.service_name}" for s in event.subscriptions
        )
        when = format_relative_date(event.date, today=today)
        lines.append(f"- **{when}** {names}: {format_amount(event.total_amount, event.currency)}")
    return "\n".join(lines)


def build_reminder(events: Sequence[PaymentEvent], today: date | None = None) -> tuple[str, str]:
    count = sum(len(e.subscriptions) for e in events)
    return f"결제 예정 알림 ({count}건)", describe_events(events, today=today)


def build_monthly_summary(year: int, month: int, events: Sequence[PaymentEvent]) -> tuple[str, str]:
    total = calculate_monthly_total(events)
    currency = events[0].currency if events else "KRW"
    title = f"{format_month_name(year, month)} 결제 요약"
    description = f"결제일 {len(events)}일, 총 {format_amount(total, currency)}"
    return title, description


async def send_discord_webhook(
    webhook_url: str,
    title: str,
    description: str,
    color: int = SUMMARY_COLOR,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """Post one embed; ``False`` when no URL is configured or the post fails."""
    if not webhook_url:
        return False
    payload = {"embeds": [{"title": title, "description": description, "color": color}]}
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=10)
    try:
        resp = await client.post(webhook_url, json=payload)
        return resp.status_code == 204
    except httpx.HTTPError as e:
        logger.warning(f"Discord webhook failed: {e}")
        return False
    finally:
        if owns_client:
            await client.aclose()
