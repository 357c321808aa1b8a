"""A persistent set of group reminders, each running on its own thread."""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timedelta
from os import PathLike
from typing import Callable

from .timer import Timer
from .wake import next_wake_time, should_fire

_DESCRIPTORS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}
_MONTH_NAMES = {
    name: number
    for number, name in enumerate(
        ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"],
        start=1,
    )
}
_DAY_NAMES = {
    name: number
    for number, name in enumerate(["sun", "mon", "tue", "wed", "thu", "fri", "sat"])
}
_SEARCH_YEARS = 5


def _parse_value(text: str, names: dict[str, int]) -> int:
    named = names.get(text.lower())
    if named is not None:
        return named
    try:
        return int(text)
    except ValueError:
        raise ValueError(f"failed to parse int from {text!r}") from None


def _parse_field(field: str, low: int, high: int, names: dict[str, int]) -> tuple[frozenset[int], bool]:
    """Parse one cron field into its set of values and whether it was a bare star."""
    values: set[int] = set()
    star = False
    for part in field.split(","):
        span, _, step_text = part.partition("/")
        step = 1
        if step_text:
            step = _parse_value(step_text, {})
            if step <= 0:
                raise ValueError(f"step of range should be a positive number: {part!r}")
        if span in ("*", "?"):
            start, end = low, high
            if step == 1:
                star = True
        else:
            first, dash, last = span.partition("-")
            start = _parse_value(first, names)
            end = _parse_value(last, names) if dash else start
            if step_text and not dash:
                end = high
        if start < low:
            raise ValueError(f"beginning of range ({start}) below minimum ({low}): {part!r}")
        if end > high:
            raise ValueError(f"end of range ({end}) above maximum ({high}): {part!r}")
        if start > end:
            raise ValueError(f"beginning of range ({start}) beyond end of range ({end}): {part!r}")
        values.update(range(start, end + 1, step))
    return frozenset(values), star


class CronSchedule:
    """A standard five-field cron schedule: minute, hour, day of month, month, day of week."""

    def __init__(self, spec: str) -> None:
        self.spec = spec
        text = _DESCRIPTORS.get(spec.strip().lower(), spec)
        fields = text.split()
        if len(fields) != 5:
            raise ValueError(f"expected 5 fields, found {len(fields)}: {spec!r}")
        self.minutes, _ = _parse_field(fields[0], 0, 59, {})
        self.hours, _ = _parse_field(fields[1], 0, 23, {})
        self.days, self._any_day = _parse_field(fields[2], 1, 31, {})
        self.months, _ = _parse_field(fields[3], 1, 12, _MONTH_NAMES)
        self.weekdays, self._any_weekday = _parse_field(fields[4], 0, 6, _DAY_NAMES)

    def _day_matches(self, moment: datetime) -> bool:
        by_day = moment.day in self.days
        by_weekday = (moment.weekday() + 1) % 7 in self.weekdays
        if self._any_day or self._any_weekday:
            return by_day and by_weekday
        return by_day or by_weekday

    def matches(self, moment: datetime) -> bool:
        """Whether the schedule fires in the minute containing ``moment``."""
        return (
            moment.minute in self.minutes
            and moment.hour in self.hours
            and moment.month in self.months
            and self._day_matches(moment)
        )

    def next_after(self, moment: datetime) -> datetime:
        """The first whole minute strictly after ``moment`` on which the schedule fires."""
        current = moment.replace(second=0, microsecond=0) + timedelta(minutes=1)
        limit = current.year + _SEARCH_YEARS
        while current.year <= limit:
            if current.month not in self.months:
                first = current.replace(day=1, hour=0, minute=0)
                current = (first + timedelta(days=32)).replace(day=1)
            elif not self._day_matches(current):
                current = current.replace(hour=0, minute=0) + timedelta(days=1)
            elif current.hour not in self.hours:
                current = current.replace(minute=0) + timedelta(hours=1)
            elif current.minute not in self.minutes:
                current += timedelta(minutes=1)
            else:
                return current
        raise ValueError(f"no time matches {self.spec!r}")


_COLUMNS = ("id", "emdwhm", "sid", "gid", "alert", "cron", "url")


class Clock:
    """Timers kept in memory and in a SQLite table, each woken on its own thread."""

    def __init__(
        self,
        db_path: str | PathLike[str],
        send: Callable[[Timer], None] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        self._lock = threading.RLock()
        self._send = send or (lambda timer: None)
        self._now = now or datetime.now
        self._timers: dict[int, Timer] = {}
        self._stops: dict[int, threading.Event] = {}
        self._threads: list[threading.Thread] = []
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS timer ("
                "id INTEGER PRIMARY KEY, emdwhm INTEGER, sid INTEGER, gid INTEGER, "
                "alert TEXT, cron TEXT, url TEXT)"
            )
            self._db.commit()
            rows = self._db.execute(f"SELECT {', '.join(_COLUMNS)} FROM timer").fetchall()
        for row in rows:
            self.register_timer(Timer(*row), False)

    def __enter__(self) -> "Clock":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _start(self, key: int, target: Callable, *args) -> None:
        stop = threading.Event()
        with self._lock:
            self._stops[key] = stop
            thread = threading.Thread(target=target, args=(*args, stop), daemon=True)
            self._threads.append(thread)
        thread.start()

    def _stop(self, key: int) -> None:
        with self._lock:
            stop = self._stops.pop(key, None)
        if stop is not None:
            stop.set()

    def _run_cron(self, timer: Timer, schedule: CronSchedule, stop: threading.Event) -> None:
        while not stop.is_set():
            now = self._now()
            try:
                due = schedule.next_after(now)
            except ValueError:
                return
            if stop.wait(max((due - now).total_seconds(), 0.0)):
                return
            self._send(timer)

    def _run_timer(self, timer: Timer, stop: threading.Event) -> None:
        while timer.en and not stop.is_set():
            now = self._now()
            due = next_wake_time(timer, now)
            if stop.wait(max((due - now).total_seconds(), 0.0)):
                return
            if should_fire(timer, self._now()):
                self._send(timer)

    def register_timer(self, timer: Timer, save: bool) -> bool:
        """Register and start ``timer``; with ``save`` assign its id and store it.

        A timer already registered under the same id is disabled and replaced.
        Returns whether the timer is now running; an invalid cron spec leaves
        the reason in ``timer.alert``.
        """
        if save:
            timer.id = timer.timer_id()
        key = timer.id
        existing = self.get_timer(key)
        if existing is not None and existing is not timer:
            existing.en = False
            self._stop(key)
        if timer.cron:
            try:
                schedule = CronSchedule(timer.cron)
            except ValueError as err:
                timer.alert = str(err)
                return False
            if save:
                self.add_timer_into_db(timer)
            self.add_timer_into_map(timer)
            self._start(key, self._run_cron, timer, schedule)
            return True
        if save:
            self.add_timer_into_db(timer)
        self.add_timer_into_map(timer)
        if not timer.en:
            return False
        self._start(key, self._run_timer, timer)
        return True

    def cancel_timer(self, key: int) -> bool:
        """Stop and forget the timer with id ``key``; False if there is none."""
        timer = self.get_timer(key)
        if timer is None:
            return False
        if not timer.cron:
            timer.en = False
        self._stop(key)
        with self._lock:
            self._timers.pop(key, None)
            self._db.execute("DELETE FROM timer WHERE id = ?", (key,))
            self._db.commit()
        return True

    def list_timers(self, group_id: int) -> list[str]:
        """Human-readable schedules of the timers of one group."""
        with self._lock:
            timers = list(self._timers.values())
        listed = []
        for timer in timers:
            if timer.group_id != group_id:
                continue
            info = timer.timer_info()
            text = info[info.index("]") + 1 :] + "\n"
            text = text.replace("-1", "每")
            text = text.replace("月0日0周", "月周天")
            text = text.replace("月0日", "月")
            text = text.replace("日0周", "日")
            listed.append(text)
        return listed

    def get_timer(self, key: int) -> Timer | None:
        """The registered timer with id ``key``, if any."""
        with self._lock:
            return self._timers.get(key)

    def add_timer_into_db(self, timer: Timer) -> None:
        """Store ``timer``, replacing any row with the same id."""
        with self._lock:
            self._db.execute(
                f"INSERT OR REPLACE INTO timer ({', '.join(_COLUMNS)}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    timer.id,
                    timer.emdwhm,
                    timer.self_id,
                    timer.group_id,
                    timer.alert,
                    timer.cron,
                    timer.url,
                ),
            )
            self._db.commit()

    def add_timer_into_map(self, timer: Timer) -> None:
        """Keep ``timer`` in memory under its id."""
        with self._lock:
            self._timers[timer.id] = timer

    def close(self) -> None:
        """Stop every timer thread and close the database."""
        with self._lock:
            stops = list(self._stops.values())
            self._stops.clear()
            threads = list(self._threads)
            self._threads.clear()
        for stop in stops:
            stop.set()
        for thread in threads:
            thread.join(timeout=1.0)
        with self._lock:
            self._db.close()