from moonwave.models.subscription import Subscription
from moonwave.models.exchange_rate import ExchangeRate
from moonwave.models.notification_preference import NotificationPreference

__all__ = [
    "Subscription",
    "ExchangeRate",
    "NotificationPreference",
]
