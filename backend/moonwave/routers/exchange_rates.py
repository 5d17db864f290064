from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from moonwave.db import get_db
from moonwave.models.exchange_rate import ExchangeRate
from moonwave.schemas.exchange_rate import ExchangeRateResponse, ExchangeRateUpdate
from moonwave.services.auth import get_current_user_id
from moonwave.services.exchange_rate import (
    ExchangeRateError,
    fetch_latest_rate,
    format_last_updated,
    format_rate,
    get_or_create_rate,
    update_rate,
)

router = APIRouter(prefix="/exchange-rate", tags=["exchange-rate"])


def _to_response(row: ExchangeRate) -> ExchangeRateResponse:
    last_updated = row.updated_at or row.created_at
    return ExchangeRateResponse(
        usd_krw=row.usd_krw,
        formatted=format_rate(row.usd_krw),
        last_updated=last_updated,
        last_updated_label=format_last_updated(last_updated),
    )


@router.get("", response_model=ExchangeRateResponse)
async def get_exchange_rate(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return _to_response(await get_or_create_rate(db, user_id))


@router.put("", response_model=ExchangeRateResponse)
async def put_exchange_rate(
    data: ExchangeRateUpdate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    try:
        row = await update_rate(db, user_id, data.usd_krw)
    except ExchangeRateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _to_response(row)


@router.post("/refresh", response_model=ExchangeRateResponse)
async def refresh_exchange_rate(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    latest = await fetch_latest_rate()
    if latest is None:
        raise HTTPException(status_code=502, detail="Exchange rate service unavailable")
    try:
        row = await update_rate(db, user_id, latest)
    except ExchangeRateError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return _to_response(row)
