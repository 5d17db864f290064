from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from moonwave.db import Base


class NotificationPreference(Base):
    __tablename__ = "user_notification_preferences"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    payment_reminders: Mapped[bool] = mapped_column(Boolean, default=True)
    renewal_alerts: Mapped[bool] = mapped_column(Boolean, default=True)
    price_changes: Mapped[bool] = mapped_column(Boolean, default=True)
    monthly_summary: Mapped[bool] = mapped_column(Boolean, default=True)
    system_updates: Mapped[bool] = mapped_column(Boolean, default=False)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=True
    )
