from decimal import Decimal

from pydantic import BaseModel

from moonwave.schemas.calendar import PaymentEvent, PaymentStats


class DashboardSummary(BaseModel):
    total_subscriptions: int
    active_count: int
    monthly_cost: Decimal
    monthly_cost_usd: Decimal
    average_cost: Decimal
    total_cost_krw: Decimal
    total_cost_usd: Decimal
    currency: str
    exchange_rate: Decimal
    month_total: Decimal
    month_total_by_currency: dict[str, Decimal]
    stats: PaymentStats
    today_payments: list[PaymentEvent]
    weekly_payments: list[PaymentEvent]
    upcoming_payments: list[PaymentEvent]
