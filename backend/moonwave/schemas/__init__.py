from moonwave.schemas.subscription import SubscriptionSnapshot, SubscriptionStatus
from moonwave.schemas.calendar import (
    CalendarDay, CalendarGrid, CalendarMonth, CalendarWeek,
    EventSubscription, PaymentEvent, PaymentStats, ProjectionRequest,
)
from moonwave.schemas.exchange_rate import ExchangeRateResponse, ExchangeRateUpdate
from moonwave.schemas.notification_preference import (
    NotificationPreferenceBase, NotificationPreferenceResponse, NotificationPreferenceUpdate,
)
from moonwave.schemas.dashboard import DashboardSummary
