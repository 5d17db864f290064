from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ExchangeRateUpdate(BaseModel):
    usd_krw: Decimal = Field(gt=0)


class ExchangeRateResponse(BaseModel):
    usd_krw: Decimal
    formatted: str
    last_updated: datetime | None = None
    last_updated_label: str
