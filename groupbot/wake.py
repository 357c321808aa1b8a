"""Working out when a packed-schedule timer should next wake and fire."""

from __future__ import annotations

from datetime import datetime, timedelta

from .timer import Timer


def _weekday(moment: datetime) -> int:
    """Day of the week with Sunday as 0."""
    return (moment.weekday() + 1) % 7


def _make_date(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    second: int,
    microsecond: int,
    tzinfo=None,
) -> datetime:
    """Build a datetime, carrying out-of-range fields into the next larger unit."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    base = datetime(year, month, 1, tzinfo=tzinfo)
    return base + timedelta(
        days=day - 1, hours=hour, minutes=minute, seconds=second, microseconds=microsecond
    )


def _add_date(moment: datetime, years: int, months: int, days: int) -> datetime:
    return _make_date(
        moment.year + years,
        moment.month + months,
        moment.day + days,
        moment.hour,
        moment.minute,
        moment.second,
        moment.microsecond,
        moment.tzinfo,
    )


def first_week(date: datetime, week: int) -> datetime:
    """The first day in the month of ``date`` falling on ``week`` (Sunday is 0)."""
    day = _add_date(date, 0, 0, 1 - date.day)
    while _weekday(day) != week:
        day = _add_date(day, 0, 0, 1)
    return day


def next_wake_time(timer: Timer, now: datetime) -> datetime:
    """The next moment after ``now`` at which ``timer`` should be checked."""
    month, day, hour, minute, week = (
        timer.month,
        timer.day,
        timer.hour,
        timer.minute,
        timer.week,
    )
    unit = timedelta(0)
    if minute >= 0:
        if hour < 0:
            unit = timedelta(hours=1)
        elif day < 0 or week < 0:
            unit = timedelta(days=1)
        elif day == 0 and week >= 0:
            delta = timedelta(days=week - _weekday(now))
            if delta < timedelta(0):
                delta = timedelta(days=7)
            unit += delta
    else:
        unit = timedelta(minutes=1)

    stable = 0
    if minute < 0:
        minute = now.minute
    if hour < 0:
        hour = now.hour
    else:
        stable |= 0x8
    if day < 0:
        day = now.day
    elif day > 0:
        stable |= 0x4
    else:
        day = now.day
        if week >= 0:
            stable |= 0x2
    if month < 0:
        month = now.month
    else:
        stable |= 0x1

    if stable == 0b0101:
        if timer.day != now.day or timer.month != now.month:
            hour = 0
    elif stable == 0b1001:
        if timer.month != now.month:
            day = 0
    elif stable == 0b0001:
        if timer.month != now.month:
            day = 0
            hour = 0

    date = _make_date(
        now.year, month, day, hour, minute, now.second, now.microsecond, now.tzinfo
    )
    if unit > timedelta(0):
        date += unit

    if date <= now:
        if timer.month < 0:
            if timer.day > 0 or (timer.day == 0 and timer.week >= 0):
                date = _add_date(date, 0, 1, 0)
            elif timer.day < 0 or timer.week < 0:
                if timer.hour > 0:
                    date = _add_date(date, 0, 0, 1)
                elif timer.minute > 0:
                    date += timedelta(hours=1)
        else:
            date = _add_date(date, 1, 0, 0)

    if stable & 0x8 and date.hour != hour:
        if stable & 0x4 == 0:
            date = _add_date(date, 0, 0, 1) - timedelta(hours=1)
        elif stable & 0x2 == 0:
            date = _add_date(date, 0, 0, 7) - timedelta(hours=1)
        elif stable == 0:
            date = _add_date(date, 0, 1, 0) - timedelta(hours=1)
        else:
            date = _add_date(date, 1, 0, 0) - timedelta(hours=1)

    if stable & 0x4 and date.day != day:
        if stable == 0:
            date = _add_date(date, 0, 1, -1)
        else:
            date = _add_date(date, 1, 0, -1)

    if stable & 0x2 and _weekday(date) != week:
        if stable == 0:
            date = _add_date(date, 0, 1, 0)
        else:
            date = _add_date(date, 1, 0, 0)
        date = first_week(date, week)

    if date <= now:
        date = now + timedelta(minutes=1)
    return date


def should_fire(timer: Timer, now: datetime) -> bool:
    """Whether an enabled ``timer`` is due at ``now``."""
    if not timer.en:
        return False
    if timer.month >= 0 and timer.month != now.month:
        return False
    if timer.day < 0 or timer.day == now.day:
        pass
    elif timer.day == 0:
        if timer.week >= 0 and timer.week != _weekday(now):
            return False
    else:
        return False
    hour_ok = timer.hour < 0 or timer.hour == now.hour
    minute_ok = timer.minute < 0 or timer.minute == now.minute
    return hour_ok and minute_ok