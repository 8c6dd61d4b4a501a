from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from inkbook.core.exceptions import InvalidScheduleConfiguration, ServiceExceedsCapacity, SlotSearchExhausted
from inkbook.models.booking import AppointmentInterval, Frequency, ProjectAvailabilityRequest, WorkDay
from inkbook.services import project_service
from inkbook.services.project_service import compute_project_dates, next_search_start
from inkbook.services.schedule_service import work_hours_violation

NOW = datetime(2026, 1, 1, 0, 0, tzinfo=UTC)
ALL_DAYS = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC)


def weekdays() -> list[WorkDay]:
    return [WorkDay(day=day, enabled=day not in ('Saturday', 'Sunday'), start='09:00', end='17:00') for day in ALL_DAYS]


def make_request(**overrides) -> ProjectAvailabilityRequest:
    payload = {
        'service_duration_minutes': 60,
        'sittings': 1,
        'frequency': Frequency.SINGLE,
        'start_date': utc(2026, 1, 5, 8, 0),
        'work_schedule': weekdays(),
        'existing_appointments': [],
        'time_zone': 'UTC',
    }
    payload.update(overrides)
    return ProjectAvailabilityRequest(**payload)


@pytest.fixture
def no_search(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError('slot search should not run')

    monkeypatch.setattr(project_service, 'find_next_slot', fail)


def test_service_longer_than_any_work_day_is_rejected_before_searching(no_search) -> None:
    with pytest.raises(ServiceExceedsCapacity) as exception_info:
        compute_project_dates(make_request(service_duration_minutes=600), now=NOW)

    assert exception_info.value.duration_minutes == 600
    assert exception_info.value.max_daily_minutes == 480
    assert '600 min' in exception_info.value.detail


def test_short_saturday_window_cannot_hold_long_service(no_search) -> None:
    schedule = [WorkDay(day='Saturday', enabled=True, start='10:00', end='12:00')]

    with pytest.raises(ServiceExceedsCapacity) as exception_info:
        compute_project_dates(make_request(service_duration_minutes=180, work_schedule=schedule), now=NOW)

    assert exception_info.value.max_daily_minutes == 120


@pytest.mark.parametrize(
    'schedule',
    [
        [],
        [WorkDay(day=day, enabled=False, start='09:00', end='17:00') for day in ALL_DAYS],
        [WorkDay(day='Monday', enabled=True, start='whenever', end='17:00')],
    ],
)
def test_unusable_schedule_is_rejected_before_searching(no_search, schedule: list[WorkDay]) -> None:
    with pytest.raises(InvalidScheduleConfiguration):
        compute_project_dates(make_request(work_schedule=schedule), now=NOW)


def test_single_sitting_lands_on_first_opening() -> None:
    result = compute_project_dates(make_request(), now=NOW)

    assert result.proposed_dates == [utc(2026, 1, 5, 9, 0)]
    assert result.total_cost is None


def test_weekly_sittings_repeat_at_same_time() -> None:
    result = compute_project_dates(make_request(sittings=3, frequency=Frequency.WEEKLY), now=NOW)

    assert result.proposed_dates == [
        utc(2026, 1, 5, 9, 0),
        utc(2026, 1, 12, 9, 0),
        utc(2026, 1, 19, 9, 0),
    ]


def test_weekly_sittings_stay_on_first_weekday_of_partial_week() -> None:
    schedule = [
        WorkDay(day=day, enabled=day in ('Monday', 'Wednesday', 'Friday'), start='09:00', end='17:00')
        for day in ALL_DAYS
    ]

    result = compute_project_dates(
        make_request(sittings=3, frequency=Frequency.WEEKLY, work_schedule=schedule), now=NOW
    )

    dates = result.proposed_dates
    assert [d.weekday() for d in dates] == [0, 0, 0]
    assert [later - earlier for earlier, later in zip(dates, dates[1:])] == [timedelta(days=7)] * 2


def test_consecutive_sittings_skip_disabled_days() -> None:
    result = compute_project_dates(
        make_request(sittings=3, frequency=Frequency.CONSECUTIVE, start_date=utc(2026, 1, 8, 8, 0)),
        now=NOW,
    )

    # Thursday, Friday, then Monday after the weekend
    assert result.proposed_dates == [
        utc(2026, 1, 8, 9, 0),
        utc(2026, 1, 9, 9, 0),
        utc(2026, 1, 12, 9, 0),
    ]


def test_biweekly_sittings_are_two_weeks_apart() -> None:
    result = compute_project_dates(make_request(sittings=2, frequency=Frequency.BIWEEKLY), now=NOW)

    assert result.proposed_dates == [utc(2026, 1, 5, 9, 0), utc(2026, 1, 19, 9, 0)]


def test_monthly_cadence_clips_to_end_of_shorter_month() -> None:
    every_day = [WorkDay(day=day, enabled=True, start='09:00', end='17:00') for day in ALL_DAYS]

    result = compute_project_dates(
        make_request(
            sittings=2,
            frequency=Frequency.MONTHLY,
            start_date=utc(2026, 1, 31, 9, 0),
            work_schedule=every_day,
        ),
        now=NOW,
    )

    assert result.proposed_dates == [utc(2026, 1, 31, 9, 0), utc(2026, 2, 28, 9, 0)]


def test_next_search_start_keeps_local_hour_across_dst() -> None:
    # 09:00 EST on March 2; a week later New York is on EDT
    assert next_search_start(utc(2026, 3, 2, 14, 0), Frequency.WEEKLY, 'America/New_York') == utc(2026, 3, 9, 13, 0)


def test_weekly_project_across_dst_change_keeps_local_opening() -> None:
    schedule = [WorkDay(day='Monday', enabled=True, start='09:00', end='17:00')]

    result = compute_project_dates(
        make_request(
            sittings=2,
            frequency=Frequency.WEEKLY,
            start_date=utc(2026, 3, 2, 0, 0),
            work_schedule=schedule,
            time_zone='America/New_York',
        ),
        now=NOW,
    )

    assert result.proposed_dates == [utc(2026, 3, 2, 14, 0), utc(2026, 3, 9, 13, 0)]


def test_proposals_avoid_existing_bookings_and_each_other() -> None:
    existing = [
        AppointmentInterval(start_time=utc(2026, 1, 5, 9, 0), end_time=utc(2026, 1, 5, 12, 0)),
        AppointmentInterval(start_time=utc(2026, 1, 6, 13, 0), end_time=utc(2026, 1, 6, 17, 0)),
        AppointmentInterval(start_time=utc(2026, 1, 7, 9, 0), end_time=utc(2026, 1, 7, 17, 0)),
    ]
    request = make_request(
        service_duration_minutes=180,
        sittings=4,
        frequency=Frequency.CONSECUTIVE,
        existing_appointments=existing,
    )

    result = compute_project_dates(request, now=NOW)

    duration = timedelta(minutes=request.service_duration_minutes)
    dates = result.proposed_dates
    assert len(dates) == 4
    assert dates == sorted(dates)
    assert len(set(dates)) == len(dates)
    for index, start in enumerate(dates):
        assert not any(interval.overlaps(start, start + duration) for interval in existing)
        for other in dates[index + 1:]:
            assert start + duration <= other
        assert work_hours_violation(start, request.service_duration_minutes, request.work_schedule, ZoneInfo('UTC')) is None
    assert dates[0] == utc(2026, 1, 5, 12, 0)


def test_failed_sitting_is_reported_by_position() -> None:
    busy = [AppointmentInterval(start_time=utc(2026, 1, 6, 0, 0), end_time=utc(2028, 1, 1, 0, 0))]

    with pytest.raises(SlotSearchExhausted) as exception_info:
        compute_project_dates(
            make_request(sittings=3, frequency=Frequency.CONSECUTIVE, existing_appointments=busy),
            now=NOW,
        )

    error = exception_info.value
    assert error.sitting_index == 2
    assert error.detail.startswith('Could not find slot for sitting 2 within the next year.')
    assert 'TZ: UTC' in error.detail


def test_total_cost_is_price_per_sitting() -> None:
    result = compute_project_dates(make_request(sittings=3, frequency=Frequency.WEEKLY, price=150), now=NOW)

    assert result.total_cost == 450


def test_past_start_is_clamped_to_now() -> None:
    result = compute_project_dates(make_request(start_date=utc(2025, 6, 1, 9, 0)), now=utc(2026, 1, 5, 8, 10))

    assert result.proposed_dates == [utc(2026, 1, 5, 9, 0)]


def test_quarter_hour_zone_books_exactly_fitting_window() -> None:
    schedule = [WorkDay(day='Monday', enabled=True, start='09:00', end='10:00')]

    result = compute_project_dates(
        make_request(
            start_date=utc(2026, 1, 4, 18, 0),
            work_schedule=schedule,
            time_zone='Asia/Kathmandu',
        ),
        now=NOW,
    )

    # 09:00 in Kathmandu (UTC+5:45)
    assert result.proposed_dates == [utc(2026, 1, 5, 3, 15)]
