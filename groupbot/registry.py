"""The daily marriage registry of a group, with favorability and skill cooldowns."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from os import PathLike
from typing import Callable

DEFAULT_CD_HOURS = 12.0
MODE_MATCH = "自由恋爱"
MODE_NTR = "牛头人"
NAME_WIDTH_LIMIT = 350

_DATE_FORMAT = "%Y/%m/%d"
_TIME_FORMAT = "%H:%M:%S"
_KEEP_TABLE = "favorability"


class Status(Enum):
    """What a member is today: single, the one who married, or the one married."""

    SINGLE = "单"
    HUSBAND = "攻"
    WIFE = "受"


@dataclass
class Couple:
    """One marriage record of a group."""

    user: int
    target: int
    username: str
    targetname: str
    updatetime: str


def _group_table(group_id: int) -> str:
    return f'"group{int(group_id)}"'


class MarriageRegistry:
    """Marriages per group, renewed each day, kept in a SQLite database."""

    def __init__(
        self, db_path: str | PathLike[str], now: Callable[[], datetime] | None = None
    ) -> None:
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        self._lock = threading.RLock()
        self._now = now or datetime.now

    def __enter__(self) -> "MarriageRegistry":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # table helpers

    def _ensure_updateinfo(self) -> None:
        self._db.execute(
            "CREATE TABLE IF NOT EXISTS updateinfo ("
            "gid INTEGER PRIMARY KEY, updatetime TEXT, canmatch INTEGER, "
            "canntr INTEGER, cdtime REAL)"
        )

    def _ensure_group(self, group_id: int) -> str:
        table = _group_table(group_id)
        self._db.execute(
            f"CREATE TABLE IF NOT EXISTS {table} ("
            "user INTEGER PRIMARY KEY, target INTEGER, username TEXT, "
            "targetname TEXT, updatetime TEXT)"
        )
        return table

    def _ensure_favorability(self) -> None:
        self._db.execute(
            "CREATE TABLE IF NOT EXISTS favorability (userinfo TEXT PRIMARY KEY, favor INTEGER)"
        )

    def _ensure_cdsheet(self) -> None:
        self._db.execute(
            "CREATE TABLE IF NOT EXISTS cdsheet ("
            "time INTEGER, groupid INTEGER, userid INTEGER, modeid INTEGER)"
        )

    def _find_update(self, group_id: int) -> tuple | None:
        return self._db.execute(
            "SELECT updatetime, canmatch, canntr, cdtime FROM updateinfo WHERE gid = ?",
            (group_id,),
        ).fetchone()

    def _put_update(
        self, group_id: int, updatetime: str, can_match: int, can_ntr: int, cd_time: float
    ) -> None:
        self._db.execute(
            "INSERT OR REPLACE INTO updateinfo (gid, updatetime, canmatch, canntr, cdtime) "
            "VALUES (?, ?, ?, ?, ?)",
            (group_id, updatetime, can_match, can_ntr, cd_time),
        )

    # public interface

    def open_day(self, group_id: int) -> bool:
        """Start a new day for the group if needed; True when the roster was renewed."""
        with self._lock:
            self._ensure_updateinfo()
            today = self._now().strftime(_DATE_FORMAT)
            row = self._find_update(group_id)
            if row is None:
                self._put_update(group_id, today, 1, 1, DEFAULT_CD_HOURS)
                self._db.commit()
                return True
            if row[0] == today:
                return False
            self._db.execute(f"DROP TABLE IF EXISTS {_group_table(group_id)}")
            self._ensure_group(group_id)
            self._put_update(group_id, today, row[1], row[2], row[3])
            self._db.commit()
            return True

    def modes(self, group_id: int) -> tuple[int, int]:
        """Whether free proposals and stealing are allowed in the group, as (match, ntr)."""
        with self._lock:
            self._ensure_updateinfo()
            row = self._find_update(group_id)
            if row is None:
                self._put_update(group_id, "", 1, 1, DEFAULT_CD_HOURS)
                self._db.commit()
                return 1, 1
            return int(row[1]), int(row[2])

    def set_mode(self, group_id: int, mode: str, status: int) -> None:
        """Switch 自由恋爱 or 牛头人 on (1) or off (0); any other mode raises ValueError."""
        if mode not in (MODE_MATCH, MODE_NTR):
            raise ValueError("错误:修改内容不匹配！")
        with self._lock:
            self._ensure_updateinfo()
            row = self._find_update(group_id)
            if row is None:
                updatetime, can_match, can_ntr, cd_time = "", 1, 1, DEFAULT_CD_HOURS
            else:
                updatetime, can_match, can_ntr, cd_time = row
            if mode == MODE_MATCH:
                can_match = status
            else:
                can_ntr = status
            self._put_update(group_id, updatetime, can_match, can_ntr, cd_time)
            self._db.commit()

    def reset(self, scope: int | str) -> None:
        """Drop the roster of one group, or with scope "0" every table but favorability.

        Dropping a group that has no roster raises sqlite3.OperationalError.
        """
        scope = str(scope)
        with self._lock:
            if scope == "0":
                tables = [
                    f'"{name}"'
                    for (name,) in self._db.execute(
                        "SELECT name FROM sqlite_master WHERE type = 'table'"
                    ).fetchall()
                    if name != _KEEP_TABLE
                ]
            else:
                tables = [f'"group{scope}"']
            for table in tables:
                self._db.execute(f"DROP TABLE {table}")
            self._ensure_updateinfo()
            self._db.commit()

    def lookup(self, group_id: int, user_id: int) -> tuple[Couple | None, Status]:
        """The marriage record involving ``user_id`` today and the user's role in it."""
        with self._lock:
            table = self._ensure_group(group_id)
            columns = "user, target, username, targetname, updatetime"
            row = self._db.execute(
                f"SELECT {columns} FROM {table} WHERE user = ? LIMIT 1", (user_id,)
            ).fetchone()
            if row is not None:
                return Couple(*row), Status.HUSBAND
            row = self._db.execute(
                f"SELECT {columns} FROM {table} WHERE target = ? LIMIT 1", (user_id,)
            ).fetchone()
            if row is not None:
                return Couple(*row), Status.WIFE
            return None, Status.SINGLE

    def register(
        self, group_id: int, user_id: int, target: int, username: str, targetname: str
    ) -> None:
        """Record that ``user_id`` married ``target`` now; a target of 0 means single by choice."""
        with self._lock:
            table = self._ensure_group(group_id)
            self._db.execute(
                f"INSERT OR REPLACE INTO {table} "
                "(user, target, username, targetname, updatetime) VALUES (?, ?, ?, ?, ?)",
                (user_id, target, username, targetname, self._now().strftime(_TIME_FORMAT)),
            )
            self._db.commit()

    def divorce_wife(self, group_id: int, wife: int) -> None:
        """Remove the marriage in which ``wife`` was married."""
        with self._lock:
            table = self._ensure_group(group_id)
            self._db.execute(f"DELETE FROM {table} WHERE target = ?", (wife,))
            self._db.commit()

    def divorce_husband(self, group_id: int, husband: int) -> None:
        """Remove the marriage in which ``husband`` did the marrying."""
        with self._lock:
            table = self._ensure_group(group_id)
            self._db.execute(f"DELETE FROM {table} WHERE user = ?", (husband,))
            self._db.commit()

    def roster(self, group_id: int) -> list[tuple[str, str, str, str]]:
        """Today's couples as (username, user, targetname, target), singles left out."""
        with self._lock:
            table = self._ensure_group(group_id)
            rows = self._db.execute(
                f"SELECT user, target, username, targetname FROM {table} GROUP BY user"
            ).fetchall()
        return [
            (username, str(user), targetname, str(target))
            for user, target, username, targetname in rows
            if target != 0
        ]

    def _find_favor(self, user_id: int, target: int) -> tuple | None:
        return self._db.execute(
            "SELECT userinfo, favor FROM favorability WHERE userinfo GLOB ? LIMIT 1",
            (f"*{user_id}+{target}*",),
        ).fetchone()

    def _new_favor(self, user_id: int, target: int, favor: int) -> None:
        self._db.execute(
            "INSERT OR REPLACE INTO favorability (userinfo, favor) VALUES (?, ?)",
            (f"{user_id}+{target}+{user_id}", favor),
        )

    def get_favorability(self, user_id: int, target: int) -> int:
        """The favorability between two users, in either order; 0 when new."""
        with self._lock:
            self._ensure_favorability()
            row = self._find_favor(user_id, target)
            if row is None:
                self._new_favor(user_id, target, 0)
                self._db.commit()
                return 0
            return int(row[1])

    def set_favorability(self, user_id: int, target: int, score: int) -> int:
        """Add ``score`` to a pair's favorability, kept within 0 to 100, and return it.

        A pair seen for the first time starts at ``score`` itself.
        """
        with self._lock:
            self._ensure_favorability()
            row = self._find_favor(user_id, target)
            if row is None:
                self._new_favor(user_id, target, score)
                self._db.commit()
                return score
            favor = min(100, max(0, int(row[1]) + score))
            self._db.execute(
                "UPDATE favorability SET favor = ? WHERE userinfo = ?", (favor, row[0])
            )
            self._db.commit()
            return favor

    def get_cd_time(self, group_id: int) -> float:
        """The cooldown of skills in the group, in hours."""
        with self._lock:
            self._ensure_updateinfo()
            row = self._find_update(group_id)
            if row is None:
                self._put_update(group_id, "", 1, 1, DEFAULT_CD_HOURS)
                self._db.commit()
                return DEFAULT_CD_HOURS
            return float(row[3])

    def set_cd_time(self, group_id: int, hours: float) -> None:
        """Set the cooldown of skills in the group, in hours."""
        with self._lock:
            self._ensure_updateinfo()
            row = self._find_update(group_id)
            if row is None:
                self._put_update(group_id, "", 1, 1, hours)
            else:
                self._put_update(group_id, row[0], row[1], row[2], hours)
            self._db.commit()

    def write_cd_time(self, group_id: int, user_id: int, mode: int) -> None:
        """Record that a user used skill ``mode`` now."""
        with self._lock:
            self._ensure_cdsheet()
            self._db.execute(
                "INSERT INTO cdsheet (time, groupid, userid, modeid) VALUES (?, ?, ?, ?)",
                (int(self._now().timestamp()), group_id, user_id, mode),
            )
            self._db.commit()

    def compare_cd_time(self, group_id: int, user_id: int, mode: int, hours: float) -> bool:
        """Whether a user may use skill ``mode`` again; an expired record is removed."""
        where = "WHERE groupid = ? AND userid = ? AND modeid = ?"
        key = (group_id, user_id, mode)
        with self._lock:
            self._ensure_cdsheet()
            row = self._db.execute(
                f"SELECT time FROM cdsheet {where} ORDER BY rowid LIMIT 1", key
            ).fetchone()
            if row is None:
                return True
            elapsed = (self._now().timestamp() - row[0]) / 3600
            if elapsed > hours:
                self._db.execute(f"DELETE FROM cdsheet {where}", key)
                self._db.commit()
                return True
            return False

    def close(self) -> None:
        """Close the database."""
        with self._lock:
            self._db.close()


def slice_name(
    name: str, measure: Callable[[str], float], limit: int = NAME_WIDTH_LIMIT
) -> str:
    """Cut a name whose drawn width exceeds ``limit`` and mark the cut with dots."""
    width = 0
    fitted = 0
    for index, char in enumerate(name):
        width += int(measure(char))
        if width > limit:
            break
        fitted = index
    if width > limit:
        return name[: max(fitted - 1, 0)] + "......"
    return name