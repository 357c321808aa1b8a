"""Group reminder timers whose schedule is packed into one integer."""

from __future__ import annotations

import hashlib
import re
import unicodedata
from dataclasses import dataclass
from typing import Sequence

_ENABLED = 0x800000
_ALL_BITS = 0xFFFFFF
_ATOI = re.compile(r"[+-]?[0-9]+")
_CHINESE_DIGITS = "零一二三四五六七八九十"
_EVERY = "每"


def _packed(mask: int, shift: int, unset: int) -> property:
    """A property reading and writing one bit field of ``emdwhm``.

    A field whose bits are all set reads as -1, meaning "every".
    """

    def fget(self: "Timer") -> int:
        value = (self.emdwhm & mask) >> shift
        return -1 if value == unset else value

    def fset(self: "Timer", value: int) -> None:
        self.emdwhm = ((value << shift) & mask) | (self.emdwhm & (_ALL_BITS ^ mask))

    return property(fget, fset)


def _escape_text(text: str) -> str:
    return text.replace("&", "&amp;").replace("[", "&#91;").replace("]", "&#93;")


def _escape_param(text: str) -> str:
    return _escape_text(text).replace(",", "&#44;")


@dataclass
class Timer:
    """A reminder: either a packed month/day/week/hour/minute schedule or a cron spec."""

    id: int = 0
    emdwhm: int = 0
    self_id: int = 0
    group_id: int = 0
    alert: str = ""
    cron: str = ""
    url: str = ""

    month = _packed(0x780000, 19, 0b1111)
    day = _packed(0x07C000, 14, 0b11111)
    week = _packed(0x003800, 11, 0b111)
    hour = _packed(0x0007C0, 6, 0b11111)
    minute = _packed(0x00003F, 0, 0b111111)

    @property
    def en(self) -> bool:
        """Whether the timer is enabled."""
        return self.emdwhm & _ENABLED != 0

    @en.setter
    def en(self, enabled: bool) -> None:
        if enabled:
            self.emdwhm |= _ENABLED
        else:
            self.emdwhm &= _ENABLED - 1

    def timer_info(self) -> str:
        """The normalised description that identifies this timer."""
        if self.cron:
            return f"[{self.group_id}]{self.cron}"
        return (
            f"[{self.group_id}]{self.month}月{self.day}日{self.week}周"
            f"{self.hour}:{self.minute}"
        )

    def timer_id(self) -> int:
        """A 32-bit identifier derived from :meth:`timer_info`."""
        digest = hashlib.md5(self.timer_info().encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "little")

    def to_cq(self) -> str:
        """The CQ-coded message sent to the group when the timer fires."""
        message = "[CQ:at,qq=all]" + _escape_text(self.alert)
        if self.url:
            message += f"[CQ:image,file={_escape_param(self.url)},cache=0]"
        return message


def chinese_char_to_int(char: str) -> int:
    """Map one Chinese numeral (零 to 十) to its value; 日 and 天 mean Sunday, 7."""
    if char in ("日", "天"):
        return 7
    index = _CHINESE_DIGITS.find(char)
    return index if index >= 0 else 0


def chinese_num_to_int(text: str) -> int:
    """Convert a one- or two-character number, Arabic or Chinese, to an int.

    "每" alone means -1 and "每二" means -2 and so on.
    """
    if not text:
        raise ValueError("empty number")
    first = text[0]
    if unicodedata.category(first) == "Nd":
        return int(text) if _ATOI.fullmatch(text) else 0
    if first == _EVERY:
        return -chinese_char_to_int(text[1]) if len(text) == 2 else -1
    if len(text) == 1:
        return chinese_char_to_int(first)
    tens = chinese_char_to_int(text[0])
    if tens != 10:
        tens *= 10
    ones = chinese_char_to_int(text[1])
    if ones == 10:
        ones = 0
    return tens + ones


def _drop_middle_ten(text: str) -> str:
    return text[0] + text[2] if len(text) == 3 else text


def get_filled_timer(
    date_strs: Sequence[str], bot_id: int, group_id: int, match_date_only: bool
) -> Timer:
    """Build a timer from the groups of a "在…月…的…点…分时…提醒大家…" match.

    On invalid input the returned timer carries the reason in ``alert`` and
    stays disabled.
    """
    timer = Timer()
    month = chinese_num_to_int(date_strs[1])
    if (month != -1 and month <= 0) or month > 12:
        timer.alert = "月份非法！"
        return timer
    timer.month = month

    day_week = date_strs[2]
    if len(day_week) == 4:  # 二十三日: drop the middle 十 and the trailing 日
        day = chinese_num_to_int(day_week[0] + day_week[2])
        if (day != -1 and day <= 0) or day > 31:
            timer.alert = "日期非法1！"
            return timer
        timer.day = day
    elif day_week.endswith("日"):
        day = chinese_num_to_int(day_week[:-1])
        if (day != -1 and day <= 0) or day > 31:
            timer.alert = "日期非法2！"
            return timer
        timer.day = day
    elif day_week.startswith(_EVERY):
        timer.week = -1
    else:
        week = chinese_num_to_int(day_week[1:])
        if week == 7:
            week = 0
        if week < 0 or week > 6:
            timer.alert = "星期非法！"
            return timer
        timer.week = week

    hour = chinese_num_to_int(_drop_middle_ten(date_strs[3]))
    if hour < -1 or hour > 23:
        timer.alert = "小时非法！"
        return timer
    timer.hour = hour

    minute = chinese_num_to_int(_drop_middle_ten(date_strs[4]))
    if minute < -1 or minute > 59:
        timer.alert = "分钟非法！"
        return timer
    timer.minute = minute

    if not match_date_only:
        url = date_strs[5]
        if url:
            timer.url = url[1:]  # drop the leading 用
            if not timer.url.startswith("http"):
                timer.url = "illegal"
                return timer
        timer.alert = date_strs[6]
        timer.en = True
    timer.self_id = bot_id
    timer.group_id = group_id
    return timer


def get_filled_cron_timer(cron: str, alert: str, url: str, bot_id: int, group_id: int) -> Timer:
    """Build a timer driven by a cron expression."""
    return Timer(self_id=bot_id, group_id=group_id, alert=alert, cron=cron, url=url)