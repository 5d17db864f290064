from datetime import datetime

from pydantic import BaseModel


class NotificationPreferenceBase(BaseModel):
    payment_reminders: bool = True
    renewal_alerts: bool = True
    price_changes: bool = True
    monthly_summary: bool = True
    system_updates: bool = False


class NotificationPreferenceUpdate(BaseModel):
    payment_reminders: bool | None = None
    renewal_alerts: bool | None = None
    price_changes: bool | None = None
    monthly_summary: bool | None = None
    system_updates: bool | None = None


class NotificationPreferenceResponse(NotificationPreferenceBase):
    user_id: str
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
