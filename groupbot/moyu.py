"""Holiday countdowns for the daily slacking reminder."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date as Date
from datetime import datetime, timedelta
from typing import Iterable

HOLIDAY_NAMES = ("元旦", "春节", "清明节", "劳动节", "端午节", "中秋节", "国庆节")
GREETING = (
    "上午好，摸鱼人！\n工作再累，一定不要忘记摸鱼哦！有事没事起身去茶水间，去厕所，"
    "去廊道走走别老在工位上坐着，钱是老板的,但命是自己的。\n"
)
CLOSING = "上班是帮老板赚钱，摸鱼是赚老板的钱！最后，祝愿天下所有摸鱼人，都能愉快的渡过每一天…"

_FIELDS = re.compile(r"([+-]?\d+)(?:_([+-]?\d+)(?:_([+-]?\d+)(?:_([+-]?\d+))?)?)?")


def _make_date(year: int, month: int, day: int) -> datetime:
    """Midnight of a date, carrying out-of-range months and days; too early clamps to the minimum."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    if year < 1:
        return datetime.min
    try:
        return datetime(year, month, 1) + timedelta(days=day - 1)
    except OverflowError:
        return datetime.min if day < 1 else datetime.max


@dataclass
class Holiday:
    """A holiday starting at ``date`` and lasting ``duration``."""

    name: str
    date: datetime
    duration: timedelta = timedelta(0)

    def describe(self, now: datetime) -> str:
        """A countdown to the holiday, or a note that it is on or over."""
        remaining = self.date - now
        if remaining >= timedelta(0):
            days = remaining / timedelta(days=1)
            return f"距离{self.name}还有: {days:.2f}天！"
        if remaining + self.duration >= timedelta(0):
            return f"好好享受 {self.name} 假期吧!"
        return f"今年 {self.name} 假期已过"


def format_holiday(dur: int, year: int, month: int, day: int) -> str:
    """The stored form of a holiday: ``days_year_month_day``."""
    return f"{dur}_{year}_{month}_{day}"


def parse_holiday(name: str, value: str) -> Holiday:
    """Read a holiday from its stored form; fields that cannot be read count as 0."""
    numbers = [0, 0, 0, 0]
    match = _FIELDS.match(value.strip())
    if match:
        numbers = [int(group) if group is not None else 0 for group in match.groups()]
    dur, year, month, day = numbers
    return Holiday(name, _make_date(year, month, day), timedelta(days=dur))


def weekend_message(today: Date) -> str:
    """How long until the weekend, or a cheer if it is already here."""
    weekday = today.weekday()
    if weekday >= 5:
        return "好好享受周末吧！"
    return f"距离周末还有:{4 - weekday}天！"


def build_reminder(today: datetime, holidays: Iterable[Holiday]) -> str:
    """The full daily reminder text for ``today``."""
    parts = [today.strftime("%Y-%m-%d"), GREETING, weekend_message(today)]
    for holiday in holidays:
        parts.append("\n")
        parts.append(holiday.describe(today))
    parts.append("\n")
    parts.append(CLOSING)
    return "".join(parts)