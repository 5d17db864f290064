import logging
import traceback
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from moonwave.config import settings
from moonwave.db import async_session, init_db
from moonwave.routers import calendar_view, dashboard, exchange_rates, notification_preferences
from moonwave.services.scheduler import (
    advance_next_payment_dates,
    send_monthly_summaries,
    send_payment_reminders,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def run_scheduled_tasks() -> None:
    async with async_session() as db:
        await advance_next_payment_dates(db)
        await send_payment_reminders(db, settings.DISCORD_WEBHOOK_URL)
        await send_monthly_summaries(db, settings.DISCORD_WEBHOOK_URL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()

    scheduler.add_job(run_scheduled_tasks, "cron", hour=settings.REMINDER_HOUR, minute=0)
    scheduler.start()
    logger.info(f"Reminder job scheduled daily at {settings.REMINDER_HOUR:02d}:00")

    yield

    scheduler.shutdown()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(calendar_view.router, prefix="/api/v1")
app.include_router(dashboard.router, prefix="/api/v1")
app.include_router(exchange_rates.router, prefix="/api/v1")
app.include_router(notification_preferences.router, prefix="/api/v1")


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logger.warning(f"Rejected request to {request.url.path}: {exc}")
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error: {exc}\n{traceback.format_exc()}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.get("/health")
async def health_check():
    return {"status": "ok", "app": settings.APP_NAME}
