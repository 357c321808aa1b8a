"""Group management storage, welcome templates and gist-based join approval."""

from __future__ import annotations

import hashlib
import re
import sqlite3
import threading
import time
import urllib.request
from os import PathLike
from typing import Callable

GIST_RAW = "https://gist.githubusercontent.com/{user}/{gist_hash}/raw/{filename}"
ANSWER_MARKER = "答案："
GIST_WINDOW_SECONDS = 600

_INT64 = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


class ManagerStore:
    """Welcome and farewell messages per group, and members admitted through a gist."""

    def __init__(self, db_path: str | PathLike[str]) -> None:
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        self._lock = threading.Lock()
        with self._lock:
            for table in ("welcome", "farewell"):
                self._db.execute(
                    f"CREATE TABLE IF NOT EXISTS {table} (gid INTEGER PRIMARY KEY, msg TEXT)"
                )
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS member (qq INTEGER PRIMARY KEY, ghun TEXT)"
            )
            self._db.commit()

    def __enter__(self) -> "ManagerStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _put(self, table: str, group_id: int, text: str) -> None:
        with self._lock:
            self._db.execute(
                f"INSERT OR REPLACE INTO {table} (gid, msg) VALUES (?, ?)", (group_id, text)
            )
            self._db.commit()

    def _get(self, table: str, group_id: int) -> str | None:
        with self._lock:
            row = self._db.execute(
                f"SELECT msg FROM {table} WHERE gid = ?", (group_id,)
            ).fetchone()
        return None if row is None else row[0]

    def set_welcome(self, group_id: int, text: str) -> None:
        """Store the welcome template of a group, replacing any earlier one."""
        self._put("welcome", group_id, text)

    def welcome(self, group_id: int) -> str | None:
        """The welcome template of a group, or None if none is set."""
        return self._get("welcome", group_id)

    def set_farewell(self, group_id: int, text: str) -> None:
        """Store the farewell template of a group, replacing any earlier one."""
        self._put("farewell", group_id, text)

    def farewell(self, group_id: int) -> str | None:
        """The farewell template of a group, or None if none is set."""
        return self._get("farewell", group_id)

    def has_member(self, username: str) -> bool:
        """Whether a GitHub user has already been admitted."""
        with self._lock:
            row = self._db.execute(
                "SELECT 1 FROM member WHERE ghun = ? LIMIT 1", (username,)
            ).fetchone()
        return row is not None

    def add_member(self, qq: int, username: str) -> None:
        """Record that ``qq`` joined as GitHub user ``username``."""
        with self._lock:
            self._db.execute(
                "INSERT OR REPLACE INTO member (qq, ghun) VALUES (?, ?)", (qq, username)
            )
            self._db.commit()

    def close(self) -> None:
        """Close the database."""
        with self._lock:
            self._db.close()


def welcome_to_cq(
    template: str, user_id: int, nickname: str, group_id: int, group_name: str
) -> str:
    """Fill the placeholders of a welcome or farewell template with CQ codes and names."""
    uid = str(user_id)
    at = f"[CQ:at,qq={uid}]"
    avatar = f"[CQ:image,file=http://q4.qlogo.cn/g?b=qq&nk={uid}&s=640]"
    text = template.replace("{at}", at)
    text = text.replace("{nickname}", nickname)
    text = text.replace("{avatar}", avatar)
    text = text.replace("{uid}", uid)
    text = text.replace("{gid}", str(group_id))
    return text.replace("{groupname}", group_name)


def unescape_brackets(text: str) -> str:
    """Turn escaped square brackets back into CQ code brackets."""
    return text.replace("&#91;", "[").replace("&#93;", "]")


def gist_filename(group_id: int) -> str:
    """The gist file name a group expects: the lowercase md5 of its number."""
    return hashlib.md5(str(group_id).encode("ascii")).hexdigest()


def parse_join_answer(comment: str) -> tuple[str, str]:
    """Split the ``username/gisthash`` answer out of a join request comment.

    Raises ValueError when the answer has no user name before a slash.
    """
    raw = comment.encode("utf-8")
    marker = ANSWER_MARKER.encode("utf-8")
    start = raw.find(marker) + len(marker)
    answer = raw[start:].decode("utf-8", errors="replace")
    slash = answer.find("/")
    if slash <= 0:
        raise ValueError("格式错误!")
    return answer[:slash], answer[slash + 1 :]


def _fetch_url(url: str) -> bytes:
    with urllib.request.urlopen(url, timeout=30) as response:
        return response.read()


def _parse_int64(text: str) -> int:
    if not _INT64.fullmatch(text):
        raise ValueError(text)
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(text)
    return value


def check_new_user(
    store: ManagerStore,
    qq: int,
    group_id: int,
    username: str,
    gist_hash: str,
    fetch: Callable[[str], bytes] | None = None,
    now: int | None = None,
) -> tuple[bool, str]:
    """Verify a join request against the applicant's gist.

    Returns whether to approve and, if not, the reason. An approved user is
    recorded in ``store``.
    """
    if store.has_member(username):
        return False, "该github用户已入群"
    url = GIST_RAW.format(user=username, gist_hash=gist_hash, filename=gist_filename(group_id))
    try:
        data = (fetch or _fetch_url)(url)
    except Exception as err:  # any failure to reach the gist is reported to the applicant
        return False, "无法连接到gist: " + str(err)
    text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else str(data)
    try:
        stamp = _parse_int64(text)
    except ValueError:
        return False, "时间戳格式错误: " + text
    current = int(time.time()) if now is None else now
    if abs(current - stamp) < GIST_WINDOW_SECONDS:
        store.add_member(qq, username)
        return True, ""
    return False, "时间戳超时"