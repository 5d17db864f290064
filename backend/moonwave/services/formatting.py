from datetime import date
from decimal import Decimal
from typing import Any

from babel.dates import format_skeleton
from babel.numbers import format_currency, format_decimal

DEFAULT_LOCALE = "ko_KR"

# Locale used to render each currency's symbol and precision
CURRENCY_LOCALES: dict[str, str] = {
    "KRW": "ko_KR",
    "USD": "en_US",
}

SERVICE_ICONS: dict[str, dict[str, str]] = {
    "Netflix": {"icon": "🎬", "color": "bg-red-100 text-red-800"},
    "Spotify": {"icon": "🎵", "color": "bg-green-100 text-green-800"},
    "YouTube": {"icon": "📺", "color": "bg-red-100 text-red-800"},
    "ChatGPT": {"icon": "🤖", "color": "bg-green-100 text-green-800"},
    "GitHub": {"icon": "💻", "color": "bg-gray-100 text-gray-800"},
    "Adobe": {"icon": "🎨", "color": "bg-purple-100 text-purple-800"},
    "Microsoft": {"icon": "💼", "color": "bg-blue-100 text-blue-800"},
    "Apple": {"icon": "🍎", "color": "bg-gray-100 text-gray-800"},
    "Google": {"icon": "🔍", "color": "bg-blue-100 text-blue-800"},
    "Amazon": {"icon": "📦", "color": "bg-orange-100 text-orange-800"},
    "Disney": {"icon": "🏰", "color": "bg-purple-100 text-purple-800"},
    "Hulu": {"icon": "📺", "color": "bg-green-100 text-green-800"},
    "Twitch": {"icon": "🎮", "color": "bg-purple-100 text-purple-800"},
    "Discord": {"icon": "💬", "color": "bg-indigo-100 text-indigo-800"},
    "Slack": {"icon": "💼", "color": "bg-purple-100 text-purple-800"},
    "Zoom": {"icon": "📹", "color": "bg-blue-100 text-blue-800"},
    "Dropbox": {"icon": "📁", "color": "bg-blue-100 text-blue-800"},
    "Notion": {"icon": "📝", "color": "bg-gray-100 text-gray-800"},
    "Figma": {"icon": "🎨", "color": "bg-purple-100 text-purple-800"},
    "Canva": {"icon": "🎨", "color": "bg-blue-100 text-blue-800"},
}

DEFAULT_ICON = {"icon": "📱", "color": "bg-gray-100 text-gray-800"}


def format_amount(amount: Any, currency: str = "KRW") -> str:
    """Render an amount with the currency's own symbol, e.g. ``₩17,000`` or ``$8.99``."""
    amount = Decimal(str(amount))
    locale = CURRENCY_LOCALES.get(currency)
    if locale is None:
        return format_decimal(amount, locale=DEFAULT_LOCALE)
    # Whole amounts drop the fraction digits
    if amount == amount.to_integral_value():
        return format_currency(amount, currency, locale=locale, format="¤#,##0", currency_digits=False)
    return format_currency(amount, currency, locale=locale)


def format_date(value: date, locale: str = DEFAULT_LOCALE) -> str:
    return format_skeleton("MMMd", value, locale=locale)


def format_month_name(year: int, month: int, locale: str = DEFAULT_LOCALE) -> str:
    return format_skeleton("yMMMM", date(year, month, 1), locale=locale)


def format_relative_date(value: date, today: date | None = None) -> str:
    today = today or date.today()
    delta = (value - today).days
    if delta == 0:
        return "오늘"
    if delta == 1:
        return "내일"
    if delta == 2:
        return "모레"
    return format_date(value)


def get_service_icon(service_name: str) -> dict[str, str]:
    return {"name": service_name, **SERVICE_ICONS.get(service_name, DEFAULT_ICON)}
