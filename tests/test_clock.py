import threading
from datetime import datetime

import pytest

from groupbot.clock import Clock, CronSchedule
from groupbot.timer import get_filled_cron_timer, get_filled_timer


def test_source_case_list_after_reload(tmp_path):
    db = tmp_path / "test.db"
    clock = Clock(db)
    clock.add_timer_into_db(get_filled_timer(["", "12", "-1", "12", "0", "", "test"], 0, 0, False))
    assert clock.list_timers(0) == []
    clock.close()
    reloaded = Clock(db)
    try:
        assert reloaded.list_timers(0) == ["12月1周12:0\n"]
        assert reloaded.get_timer(0).alert == "test"
    finally:
        reloaded.close()


def test_register_and_cancel_cron(tmp_path):
    with Clock(tmp_path / "t.db") as clock:
        timer = get_filled_cron_timer("0 10 * * *", "hello", "", 1, 5)
        assert clock.register_timer(timer, True)
        assert timer.id == timer.timer_id()
        assert clock.get_timer(timer.id) is timer
        assert clock.list_timers(5) == ["0 10 * * *\n"]
        assert clock.list_timers(6) == []
        assert clock.cancel_timer(timer.id)
        assert clock.get_timer(timer.id) is None
        assert not clock.cancel_timer(timer.id)


def test_saved_timer_persists(tmp_path):
    db = tmp_path / "t.db"
    with Clock(db) as clock:
        timer = get_filled_cron_timer("0 10 * * *", "hello", "", 1, 5)
        clock.register_timer(timer, True)
        key = timer.id
    with Clock(db) as clock:
        assert clock.get_timer(key).alert == "hello"


def test_invalid_cron(tmp_path):
    with Clock(tmp_path / "t.db") as clock:
        timer = get_filled_cron_timer("not a cron", "hello", "", 1, 5)
        assert not clock.register_timer(timer, True)
        assert timer.alert.startswith("expected 5 fields")
        assert clock.get_timer(timer.timer_id()) is None


def test_duplicate_registration_disables_old(tmp_path):
    with Clock(tmp_path / "t.db") as clock:
        strs = ["", "12", "-1", "12", "0", "", "test"]
        first = get_filled_timer(strs, 0, 0, False)
        second = get_filled_timer(strs, 0, 0, False)
        assert clock.register_timer(first, True)
        assert clock.register_timer(second, True)
        assert not first.en
        assert clock.get_timer(second.id) is second


def test_cron_timer_fires(tmp_path):
    fired = threading.Event()
    sent = []

    def send(timer):
        sent.append(timer)
        fired.set()

    fixed = datetime(2022, 10, 13, 9, 59, 59, 900000)
    with Clock(tmp_path / "t.db", send=send, now=lambda: fixed) as clock:
        timer = get_filled_cron_timer("0 10 * * *", "hello", "", 1, 5)
        clock.register_timer(timer, True)
        assert fired.wait(2.0)
        assert sent[0] is timer


def test_cron_next_after():
    daily = CronSchedule("0 10 * * *")
    assert daily.next_after(datetime(2022, 10, 13, 9, 0)) == datetime(2022, 10, 13, 10, 0)
    assert daily.next_after(datetime(2022, 10, 13, 10, 0)) == datetime(2022, 10, 14, 10, 0)
    workdays = CronSchedule("30 8 * * 1-5")
    assert workdays.next_after(datetime(2022, 10, 15, 9, 0)) == datetime(2022, 10, 17, 8, 30)
    assert CronSchedule("@daily").next_after(datetime(2022, 10, 13, 9, 0)) == datetime(2022, 10, 14, 0, 0)


def test_cron_matches():
    quarter = CronSchedule("*/15 * * * *")
    assert quarter.matches(datetime(2022, 10, 13, 9, 45))
    assert not quarter.matches(datetime(2022, 10, 13, 9, 46))
    either = CronSchedule("0 0 1 * 1")
    assert either.matches(datetime(2022, 10, 17, 0, 0))
    assert either.matches(datetime(2022, 10, 1, 0, 0))
    assert not either.matches(datetime(2022, 10, 18, 0, 0))


@pytest.mark.parametrize("spec", ["60 * * * *", "* * * *", "* 5-2 * * *", "*/0 * * * *", "a * * * *"])
def test_cron_invalid(spec):
    with pytest.raises(ValueError):
        CronSchedule(spec)