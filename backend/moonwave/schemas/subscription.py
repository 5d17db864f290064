from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

SubscriptionStatus = Literal["active", "paused", "canceled"]


class SubscriptionSnapshot(BaseModel):
    """Read-only view of a subscription row as the calendar sees it."""

    id: str
    service_name: str = ""
    amount: Decimal
    currency: str = "KRW"
    # Unknown cycles are accepted and projected monthly
    payment_cycle: str = "monthly"
    payment_day: int | None = Field(default=None, ge=1, le=31)
    start_date: date | None = None
    next_payment_date: date | None = None
    status: SubscriptionStatus = "active"
    logo_url: str | None = None
    category: str | None = None

    model_config = {"from_attributes": True}
