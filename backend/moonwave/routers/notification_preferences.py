from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from moonwave.db import get_db
from moonwave.models.notification_preference import NotificationPreference
from moonwave.schemas.notification_preference import (
    NotificationPreferenceBase,
    NotificationPreferenceResponse,
    NotificationPreferenceUpdate,
)
from moonwave.services.auth import get_current_user_id

router = APIRouter(prefix="/notification-preferences", tags=["notifications"])


async def _get_preference(db: AsyncSession, user_id: str) -> NotificationPreference | None:
    result = await db.execute(
        select(NotificationPreference).where(NotificationPreference.user_id == user_id)
    )
    return result.scalar_one_or_none()


@router.get("", response_model=NotificationPreferenceResponse)
async def get_preferences(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    pref = await _get_preference(db, user_id)
    if not pref:
        return NotificationPreferenceResponse(user_id=user_id, **NotificationPreferenceBase().model_dump())
    return pref


@router.put("", response_model=NotificationPreferenceResponse)
async def update_preferences(
    data: NotificationPreferenceUpdate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    pref = await _get_preference(db, user_id)
    if not pref:
        pref = NotificationPreference(user_id=user_id, **NotificationPreferenceBase().model_dump())
        db.add(pref)

    for key, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(pref, key, value)
    await db.flush()
    await db.refresh(pref)
    return pref
