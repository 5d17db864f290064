"""Tests for recurring payment projection."""

import logging
from datetime import date
from decimal import Decimal

import pytest

from moonwave.models.subscription import Subscription
from moonwave.services.calendar import (
    calculate_payment_dates,
    month_bounds,
    next_billing_date,
    partition_projectable,
    project_payment_events,
    resolve_cycle,
)

TODAY = date(2025, 1, 10)


def _dates(events):
    return [e.date for e in events]


class TestNextBillingDate:
    def test_weekly(self):
        assert next_billing_date(date(2025, 3, 10), "weekly") == date(2025, 3, 17)

    def test_monthly(self):
        assert next_billing_date(date(2025, 1, 15), "monthly") == date(2025, 2, 15)

    def test_quarterly(self):
        assert next_billing_date(date(2025, 1, 1), "quarterly") == date(2025, 4, 1)

    def test_yearly(self):
        assert next_billing_date(date(2025, 6, 15), "yearly") == date(2026, 6, 15)

    def test_month_end_clamps_without_drift(self):
        feb = next_billing_date(date(2025, 1, 31), "monthly", 31)
        assert feb == date(2025, 2, 28)
        assert next_billing_date(feb, "monthly", 31) == date(2025, 3, 31)

    def test_yearly_leap_day(self):
        assert next_billing_date(date(2024, 2, 29), "yearly", 29) == date(2025, 2, 28)

    def test_unknown_cycle_steps_monthly(self):
        assert next_billing_date(date(2025, 1, 15), "biweekly") == date(2025, 2, 15)


class TestResolveCycle:
    @pytest.mark.parametrize("cycle", ["weekly", "monthly", "quarterly", "yearly"])
    def test_known_cycles(self, cycle):
        assert resolve_cycle(cycle) == cycle

    @pytest.mark.parametrize("cycle", ["biweekly", "", None, "MONTHLY"])
    def test_unknown_cycles_fall_back_to_monthly(self, cycle, caplog):
        with caplog.at_level(logging.WARNING, logger="moonwave.services.calendar"):
            assert resolve_cycle(cycle) == "monthly"
        assert "falling back to monthly" in caplog.text


class TestCalculatePaymentDates:
    def test_start_inside_month_is_first_payment(self, make_subscription):
        sub = make_subscription(start_date=date(2025, 1, 10), payment_day=25)
        start, end = month_bounds(2025, 1)
        assert calculate_payment_dates(sub, start, end) == [date(2025, 1, 10)]

    def test_start_after_month_has_no_payments(self, make_subscription):
        sub = make_subscription(start_date=date(2025, 2, 1), payment_day=1)
        start, end = month_bounds(2025, 1)
        assert calculate_payment_dates(sub, start, end) == []

    def test_weekly_from_start_inside_month(self, make_subscription):
        sub = make_subscription(payment_cycle="weekly", start_date=date(2025, 1, 6), payment_day=6)
        start, end = month_bounds(2025, 1)
        assert calculate_payment_dates(sub, start, end) == [
            date(2025, 1, 6),
            date(2025, 1, 13),
            date(2025, 1, 20),
            date(2025, 1, 27),
        ]

    def test_weekly_keeps_start_weekday(self, make_subscription):
        # 2024-12-02 is a Monday
        sub = make_subscription(payment_cycle="weekly", start_date=date(2024, 12, 2), payment_day=2)
        start, end = month_bounds(2025, 1)
        assert calculate_payment_dates(sub, start, end) == [
            date(2025, 1, 6),
            date(2025, 1, 13),
            date(2025, 1, 20),
            date(2025, 1, 27),
        ]

    def test_quarterly_only_in_aligned_months(self, make_subscription):
        sub = make_subscription(payment_cycle="quarterly", start_date=date(2024, 11, 15), payment_day=15)
        assert calculate_payment_dates(sub, *month_bounds(2025, 1)) == []
        assert calculate_payment_dates(sub, *month_bounds(2025, 2)) == [date(2025, 2, 15)]
        assert calculate_payment_dates(sub, *month_bounds(2025, 5)) == [date(2025, 5, 15)]

    def test_yearly_leap_day_in_common_year(self, make_subscription):
        sub = make_subscription(payment_cycle="yearly", start_date=date(2024, 2, 29), payment_day=29)
        assert calculate_payment_dates(sub, *month_bounds(2025, 2)) == [date(2025, 2, 28)]
        assert calculate_payment_dates(sub, *month_bounds(2025, 3)) == []
        assert calculate_payment_dates(sub, *month_bounds(2028, 2)) == [date(2028, 2, 29)]


class TestProjectPaymentEvents:
    def test_monthly_subscription_scenario(self, make_subscription):
        sub = make_subscription(
            amount=Decimal("17000"),
            currency="KRW",
            payment_cycle="monthly",
            payment_day=15,
            start_date=date(2024, 1, 15),
        )
        events = project_payment_events([sub], 2025, 1, 1300, today=TODAY)
        assert len(events) == 1
        assert events[0].date == date(2025, 1, 15)
        assert events[0].total_amount == 17000
        assert events[0].currency == "KRW"

    def test_month_end_clamps_to_april_30(self, make_subscription):
        sub = make_subscription(payment_day=31, start_date=date(2025, 1, 31))
        events = project_payment_events([sub], 2025, 4, 1300, today=TODAY)
        assert _dates(events) == [date(2025, 4, 30)]

    def test_month_end_clamps_in_leap_february(self, make_subscription):
        sub = make_subscription(payment_day=31, start_date=date(2023, 12, 31))
        events = project_payment_events([sub], 2024, 2, 1300, today=TODAY)
        assert _dates(events) == [date(2024, 2, 29)]

    def test_same_day_payments_merge(self, make_subscription):
        subs = [
            make_subscription(amount=Decimal("10000"), payment_day=15),
            make_subscription(amount=Decimal("5000"), payment_day=15),
        ]
        events = project_payment_events(subs, 2025, 1, 1300, today=TODAY)
        assert len(events) == 1
        assert events[0].date == date(2025, 1, 15)
        assert events[0].total_amount == 15000
        assert [s.id for s in events[0].subscriptions] == [subs[0].id, subs[1].id]

    def test_foreign_currency_is_normalized(self, make_subscription):
        sub = make_subscription(amount=Decimal("10"), currency="USD")
        events = project_payment_events([sub], 2025, 1, 1300, today=TODAY)
        assert events[0].total_amount == 13000

    def test_mixed_currency_scenario(self, make_subscription):
        subs = [
            make_subscription(amount=Decimal("13900"), currency="KRW", payment_day=20, start_date=date(2024, 6, 20)),
            make_subscription(amount=Decimal("8"), currency="USD", payment_day=20, start_date=date(2024, 6, 20)),
        ]
        events = project_payment_events(subs, 2025, 1, Decimal("1300"), today=TODAY)
        assert len(events) == 1
        assert events[0].date == date(2025, 1, 20)
        assert events[0].total_amount == 24300

    @pytest.mark.parametrize("status", ["paused", "canceled"])
    def test_inactive_subscriptions_are_excluded(self, make_subscription, status):
        sub = make_subscription(status=status)
        assert project_payment_events([sub], 2025, 1, 1300, today=TODAY) == []

    def test_empty_input(self):
        assert project_payment_events([], 2025, 1, 1300, today=TODAY) == []

    def test_events_sorted_by_date(self, make_subscription):
        subs = [make_subscription(payment_day=day, start_date=date(2024, 12, day)) for day in (20, 5, 12)]
        events = project_payment_events(subs, 2025, 1, 1300, today=TODAY)
        assert _dates(events) == [date(2025, 1, 5), date(2025, 1, 12), date(2025, 1, 20)]

    def test_idempotent(self, make_subscription):
        subs = [
            make_subscription(payment_day=3, start_date=date(2024, 3, 3)),
            make_subscription(payment_cycle="weekly", start_date=date(2024, 12, 2)),
            make_subscription(amount=Decimal("9.99"), currency="USD", payment_day=28),
        ]
        first = project_payment_events(subs, 2025, 1, 1300, today=TODAY)
        second = project_payment_events(subs, 2025, 1, 1300, today=TODAY)
        assert first == second

    def test_unknown_cycle_projects_like_monthly(self, make_subscription):
        unknown = make_subscription(payment_cycle="biweekly", payment_day=5, start_date=date(2024, 11, 5))
        monthly = make_subscription(payment_cycle="monthly", payment_day=5, start_date=date(2024, 11, 5))
        for month in (1, 2, 3):
            assert _dates(project_payment_events([unknown], 2025, month, 1300, today=TODAY)) == _dates(
                project_payment_events([monthly], 2025, month, 1300, today=TODAY)
            )

    def test_records_missing_fields_are_skipped(self, make_subscription, caplog):
        complete = make_subscription(payment_day=15)
        no_start = make_subscription(start_date=None)
        no_day = make_subscription(payment_day=None)
        with caplog.at_level(logging.WARNING, logger="moonwave.services.calendar"):
            events = project_payment_events([complete, no_start, no_day], 2025, 1, 1300, today=TODAY)
        assert len(events) == 1
        assert [s.id for s in events[0].subscriptions] == [complete.id]
        assert no_start.id in caplog.text
        assert no_day.id in caplog.text

    def test_partition_projectable(self, make_subscription):
        complete = make_subscription()
        no_start = make_subscription(start_date=None)
        projectable, skipped = partition_projectable([complete, no_start])
        assert projectable == [complete]
        assert skipped == [no_start]

    @pytest.mark.parametrize("payment_day", [0, 32, -1])
    def test_stored_billing_day_out_of_range_is_skipped(self, make_subscription, payment_day, caplog):
        good = make_subscription()
        bad = Subscription(
            id="bad-row",
            user_id="user-1",
            service_name="Broken",
            amount=Decimal("5000"),
            currency="KRW",
            payment_cycle="monthly",
            payment_day=payment_day,
            start_date=date(2024, 1, 1),
            status="active",
        )
        with caplog.at_level(logging.WARNING, logger="moonwave.services.calendar"):
            events = project_payment_events([good, bad], 2025, 1, 1300, today=TODAY)
        assert [s.id for e in events for s in e.subscriptions] == [good.id]
        assert "bad-row" in caplog.text
        assert partition_projectable([good, bad]) == ([good], [bad])

    def test_event_flags_follow_today(self, make_subscription):
        subs = [make_subscription(payment_day=day, start_date=date(2024, 12, day)) for day in (5, 15, 20)]
        events = project_payment_events(subs, 2025, 1, 1300, today=date(2025, 1, 15))
        past, today, upcoming = events
        assert (past.is_past, past.is_today, past.is_upcoming) == (True, False, False)
        assert (today.is_past, today.is_today, today.is_upcoming) == (False, True, False)
        assert (upcoming.is_past, upcoming.is_today, upcoming.is_upcoming) == (False, False, True)

    def test_event_id_uses_first_subscription_and_date(self, make_subscription):
        sub = make_subscription(id="netflix")
        events = project_payment_events([sub], 2025, 1, 1300, today=TODAY)
        assert events[0].id == "netflix-2025-01-15"

    def test_custom_display_currency(self, make_subscription):
        sub = make_subscription(amount=Decimal("10"), currency="USD")
        events = project_payment_events([sub], 2025, 1, 1300, display_currency="USD", today=TODAY)
        assert events[0].total_amount == 10
        assert events[0].currency == "USD"

    @pytest.mark.parametrize("month", [0, 13])
    def test_invalid_month(self, month):
        with pytest.raises(ValueError, match="month"):
            project_payment_events([], 2025, month, 1300)

    @pytest.mark.parametrize("rate", [0, -1, "-1300"])
    def test_non_positive_rate(self, rate):
        with pytest.raises(ValueError, match="exchange_rate"):
            project_payment_events([], 2025, 1, rate)
