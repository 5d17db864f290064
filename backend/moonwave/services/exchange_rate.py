import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
from babel.dates import format_datetime
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from moonwave.config import settings
from moonwave.models.exchange_rate import ExchangeRate

logger = logging.getLogger(__name__)

MAX_RATE = Decimal("10000")


class ExchangeRateError(ValueError):
    pass


def validate_rate(rate: Any) -> Decimal:
    rate = Decimal(str(rate))
    if rate <= 0:
        raise ExchangeRateError("환율은 0보다 커야 합니다.")
    if rate > MAX_RATE:
        raise ExchangeRateError("환율이 너무 높습니다.")
    return rate


def convert_currency(amount: Any, from_currency: str, to_currency: str = "KRW", rate: Any = None) -> Decimal:
    """Convert between USD and KRW; other pairs are returned unchanged."""
    amount = Decimal(str(amount))
    if from_currency == to_currency:
        return amount
    rate = Decimal(str(rate if rate is not None else settings.DEFAULT_EXCHANGE_RATE))
    if from_currency == "USD" and to_currency == "KRW":
        return amount * rate
    if from_currency == "KRW" and to_currency == "USD":
        return amount / rate
    return amount


def format_rate(rate: Any) -> str:
    rate = Decimal(str(rate))
    if rate == rate.to_integral_value():
        return f"1 USD = {rate:,.0f} KRW"
    return f"1 USD = {rate:,.2f} KRW"


def format_last_updated(last_updated: datetime | None, now: datetime | None = None) -> str:
    if last_updated is None:
        return "업데이트 없음"
    now = now or datetime.now()
    minutes = int((now - last_updated).total_seconds() // 60)
    if minutes < 1:
        return "방금 전"
    if minutes < 60:
        return f"{minutes}분 전"
    if minutes < 1440:
        return f"{minutes // 60}시간 전"
    return format_datetime(last_updated, "y년 MMM d일 HH:mm", locale="ko_KR")


async def fetch_latest_rate(client: httpx.AsyncClient | None = None) -> Decimal | None:
    """Latest USD->KRW rate from the public feed, or ``None`` when unavailable."""
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=10)
    try:
        resp = await client.get(settings.EXCHANGE_RATE_API_URL)
        resp.raise_for_status()
        krw = resp.json().get("rates", {}).get("KRW")
        if krw is None:
            logger.warning("Exchange rate feed returned no KRW rate")
            return None
        return Decimal(str(krw))
    except (httpx.HTTPError, ValueError, InvalidOperation) as e:
        logger.warning(f"Exchange rate fetch failed: {e}")
        return None
    finally:
        if owns_client:
            await client.aclose()


async def get_or_create_rate(db: AsyncSession, user_id: str) -> ExchangeRate:
    result = await db.execute(select(ExchangeRate).where(ExchangeRate.user_id == user_id))
    row = result.scalar_one_or_none()
    if row is None:
        row = ExchangeRate(user_id=user_id, usd_krw=settings.DEFAULT_EXCHANGE_RATE)
        db.add(row)
        await db.flush()
        await db.refresh(row)
        logger.info(f"Created default exchange rate for user {user_id}")
    return row


async def update_rate(db: AsyncSession, user_id: str, rate: Any) -> ExchangeRate:
    row = await get_or_create_rate(db, user_id)
    row.usd_krw = validate_rate(rate)
    row.updated_at = datetime.now()
    await db.flush()
    await db.refresh(row)
    return row
