"""Pure helpers behind the group management commands."""

from __future__ import annotations

import random
import re
from typing import Any, Mapping, Sequence

MAX_BAN_MINUTES = 43199
LUCKY_POOL = 10

_INT = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1

_HOURS = {"小时"}
_DAYS = {"天"}
_EXTENDED_HOURS = {"小时", "hour", "hours", "h"}
_EXTENDED_DAYS = {"天", "day", "days", "d"}

_VERIFY_CLEAR = 0x7FFFFFFF_FFFFFFFE
_GIST_CLEAR = 0x7FFFFFFF_FFFFFFFD


def _to_int64(value: int | str) -> int:
    if isinstance(value, int):
        return value
    text = value.strip()
    if not _INT.fullmatch(text):
        return 0
    number = int(text)
    if not _INT64_MIN <= number <= _INT64_MAX:
        return 0
    return number


def parse_ban_minutes(amount: int | str, unit: str, extended: bool = False) -> int:
    """Minutes of a ban written as an amount and a unit, capped just below a month.

    Units are minutes by default, 小时 for hours and 天 for days; with
    ``extended`` the English forms (h, hour, d, day, ...) are understood too.
    An amount that is not a number counts as 0.
    """
    minutes = _to_int64(amount)
    hours = _EXTENDED_HOURS if extended else _HOURS
    days = _EXTENDED_DAYS if extended else _DAYS
    if unit in hours:
        minutes *= 60
    elif unit in days:
        minutes *= 60 * 24
    if minutes >= MAX_BAN_MINUTES + 1:
        minutes = MAX_BAN_MINUTES
    return minutes


def set_verify_flag(data: int, enable: bool) -> int:
    """Plugin data with the join-verification bit switched on or off."""
    return data | 1 if enable else data & _VERIFY_CLEAR


def set_gist_flag(data: int, enable: bool) -> int:
    """Plugin data with the gist auto-approval flag switched on or off."""
    return data | 0x10 if enable else data & _GIST_CLEAR


def pick_lucky_member(
    members: Sequence[Mapping[str, Any]], rng: random.Random | None = None
) -> Mapping[str, Any]:
    """Pick at random one of the ten members who spoke most recently.

    Raises ValueError when there are no members.
    """
    if not members:
        raise ValueError("no members to pick from")
    ordered = sorted(members, key=lambda member: int(member.get("last_sent_time", 0) or 0))
    pool = ordered[max(0, len(ordered) - LUCKY_POOL) :]
    return (rng or random).choice(pool)


def parse_cron_reminder(groups: Sequence[str]) -> tuple[str, str, str]:
    """Split the groups of a cron reminder match into (cron, alert, url).

    Raises ValueError when the match has neither three nor four groups.
    """
    if len(groups) == 4:
        url = groups[2]
        if url.startswith("用"):
            url = url[1:]
        return groups[1], groups[3], url
    if len(groups) == 3:
        return groups[1], groups[2], ""
    raise ValueError("参数非法!")