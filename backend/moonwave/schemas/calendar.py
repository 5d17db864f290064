import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from moonwave.config import settings
from moonwave.schemas.subscription import SubscriptionSnapshot

# Calendar years served by the API; the 6-week grid of the extreme
# months of the date range would run past date.min / date.max
MIN_YEAR = 1900
MAX_YEAR = 2999


class EventSubscription(BaseModel):
    id: str
    service_name: str
    amount: Decimal
    currency: str
    logo_url: str | None = None

    model_config = {"from_attributes": True, "frozen": True}


class PaymentEvent(BaseModel):
    id: str
    date: datetime.date
    subscriptions: list[EventSubscription]
    total_amount: Decimal
    currency: str
    is_today: bool
    is_upcoming: bool
    is_past: bool

    model_config = {"frozen": True}


class CalendarDay(BaseModel):
    date: datetime.date | None = None
    events: list[PaymentEvent] = []
    is_today: bool = False
    is_current_month: bool = False
    is_past: bool = False
    is_weekend: bool = False

    model_config = {"frozen": True}


class CalendarWeek(BaseModel):
    days: list[CalendarDay]

    model_config = {"frozen": True}


class CalendarGrid(BaseModel):
    year: int
    month: int
    weeks: list[CalendarWeek]

    model_config = {"frozen": True}

    @property
    def days(self) -> list[CalendarDay]:
        return [day for week in self.weeks for day in week.days]


class PaymentStats(BaseModel):
    total: int
    monthly: int
    upcoming: int
    past: int
    monthly_total: Decimal
    upcoming_total: Decimal
    past_total: Decimal


class ProjectionRequest(BaseModel):
    subscriptions: list[SubscriptionSnapshot] = []
    year: int = Field(ge=MIN_YEAR, le=MAX_YEAR)
    month: int = Field(ge=1, le=12)
    exchange_rate: Decimal = Field(default=settings.DEFAULT_EXCHANGE_RATE, gt=0)


class CalendarMonth(BaseModel):
    year: int
    month: int
    label: str
    currency: str
    exchange_rate: Decimal
    events: list[PaymentEvent]
    total_amount: Decimal
    grid: CalendarGrid
    skipped_subscription_ids: list[str] = []
