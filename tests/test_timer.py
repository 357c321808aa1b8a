import pytest

from groupbot.timer import (
    Timer,
    chinese_char_to_int,
    chinese_num_to_int,
    get_filled_cron_timer,
    get_filled_timer,
)

RANGES = {
    "month": list(range(1, 13)) + [-1],
    "day": list(range(1, 31)) + [-1],
    "week": list(range(0, 7)) + [-1],
    "hour": list(range(0, 24)) + [-1],
    "minute": list(range(0, 60)) + [-1],
}


@pytest.mark.parametrize("field", sorted(RANGES))
def test_field_round_trip(field):
    timer = Timer()
    for value in RANGES[field]:
        setattr(timer, field, value)
        assert getattr(timer, field) == value


def test_fields_are_independent():
    timer = Timer()
    timer.month = 3
    timer.day = 17
    timer.week = 5
    timer.hour = 9
    timer.minute = 41
    timer.en = True
    assert (timer.month, timer.day, timer.week, timer.hour, timer.minute) == (3, 17, 5, 9, 41)
    timer.en = False
    assert not timer.en
    assert (timer.month, timer.day, timer.week, timer.hour, timer.minute) == (3, 17, 5, 9, 41)
    timer.minute = -1
    assert (timer.month, timer.day, timer.week, timer.hour) == (3, 17, 5, 9)


def test_source_case_filled_timer():
    timer = get_filled_timer(["", "12", "-1", "12", "0", "", "test"], 0, 0, False)
    assert timer.month == 12
    assert timer.week == 1
    assert timer.hour == 12
    assert timer.minute == 0
    assert timer.alert == "test"
    assert timer.en
    assert timer.url == ""
    assert timer.timer_info() == "[0]12月0日1周12:0"


def test_filled_timer_with_url_and_ids():
    timer = get_filled_timer(["", "1", "1日", "8", "5", "用http://a.example.com/b.png", "hi"], 3, 4, False)
    assert timer.url == "http://a.example.com/b.png"
    assert timer.day == 1
    assert timer.self_id == 3
    assert timer.group_id == 4


def test_filled_timer_illegal_url():
    timer = get_filled_timer(["", "1", "1日", "8", "5", "用ftp://a", "hi"], 3, 4, False)
    assert timer.url == "illegal"
    assert not timer.en


def test_match_date_only_stays_disabled():
    timer = get_filled_timer(["", "1", "1日", "8", "5"], 3, 4, True)
    assert not timer.en
    assert timer.alert == ""
    assert timer.group_id == 4


def test_chinese_day():
    timer = get_filled_timer(["", "每", "二十三日", "8", "5", "", "x"], 0, 0, False)
    assert timer.day == 23
    assert timer.month == -1


def test_every_week_and_sunday():
    every = get_filled_timer(["", "每", "每周", "8", "5", "", "x"], 0, 0, False)
    assert every.week == -1
    sunday = get_filled_timer(["", "每", "周天", "8", "5", "", "x"], 0, 0, False)
    assert sunday.week == 0


@pytest.mark.parametrize(
    "strs,alert",
    [
        (["", "13", "1日", "1", "1", "", "x"], "月份非法！"),
        (["", "1", "三十二日", "1", "1", "", "x"], "日期非法1！"),
        (["", "1", "周八", "1", "1", "", "x"], "星期非法！"),
        (["", "1", "1日", "24", "1", "", "x"], "小时非法！"),
        (["", "1", "1日", "1", "60", "", "x"], "分钟非法！"),
    ],
)
def test_invalid_fields(strs, alert):
    timer = get_filled_timer(strs, 0, 0, False)
    assert timer.alert == alert
    assert not timer.en


def test_chinese_char_to_int():
    for index, char in enumerate("零一二三四五六七八九十"):
        assert chinese_char_to_int(char) == index
    assert chinese_char_to_int("日") == chinese_char_to_int("天") == 7
    assert chinese_char_to_int("x") == 0


def test_chinese_num_to_int():
    assert chinese_num_to_int("12") == 12
    assert chinese_num_to_int("每") == -1
    assert chinese_num_to_int("每二") == -2
    assert chinese_num_to_int("十五") == 15
    assert chinese_num_to_int("五十") == 50
    assert chinese_num_to_int("1x") == 0
    with pytest.raises(ValueError):
        chinese_num_to_int("")


def test_cron_timer_info_and_id():
    timer = get_filled_cron_timer("0 10 * * *", "hi", "", 1, 7)
    assert timer.timer_info() == "[7]0 10 * * *"
    bare = Timer(cron="0 10 * * *", group_id=7)
    assert bare.timer_id() == timer.timer_id()
    other = Timer(cron="0 10 * * *", group_id=8)
    assert other.timer_id() != timer.timer_id()
    assert 0 <= timer.timer_id() < 2**32


def test_to_cq():
    assert Timer(alert="hi").to_cq() == "[CQ:at,qq=all]hi"
    assert Timer(alert="a[b]").to_cq() == "[CQ:at,qq=all]a&#91;b&#93;"
    with_image = Timer(alert="hi", url="http://x.example.com/y.png")
    assert with_image.to_cq().endswith("[CQ:image,file=http://x.example.com/y.png,cache=0]")