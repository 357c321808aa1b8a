"""Japanese grammar entries looked up from a SQLite database."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from os import PathLike

_COLUMNS = (
    "id, tag, name, pronunciation, usage, meaning, explanation, example, grammar_url"
)


@dataclass
class Grammar:
    """One grammar point."""

    id: int = 0
    tag: str = ""
    name: str = ""
    pronunciation: str = ""
    usage: str = ""
    meaning: str = ""
    explanation: str = ""
    example: str = ""
    grammar_url: str = ""

    def describe(self) -> str:
        """The grammar point laid out for display, without its URL."""
        return (
            f"ID:\n{self.id}\n\n标签:\n{self.tag}\n\n语法名:\n{self.name}\n\n"
            f"发音:\n{self.pronunciation}\n\n用法:\n{self.usage}\n\n"
            f"意思:\n{self.meaning}\n\n解说:\n{self.explanation}\n\n示例:\n{self.example}"
        )


class GrammarStore:
    """Random lookups in a database of grammar points."""

    def __init__(self, db_path: str | PathLike[str]) -> None:
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        self._lock = threading.Lock()
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS grammar ("
                "id INTEGER PRIMARY KEY, tag TEXT, name TEXT, pronunciation TEXT, "
                "usage TEXT, meaning TEXT, explanation TEXT, example TEXT, grammar_url TEXT)"
            )
            self._db.commit()

    def __enter__(self) -> "GrammarStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _pick(self, where: str, params: tuple) -> Grammar | None:
        with self._lock:
            row = self._db.execute(
                f"SELECT {_COLUMNS} FROM grammar WHERE {where} ORDER BY RANDOM() LIMIT 1",
                params,
            ).fetchone()
        if row is None:
            return None
        return Grammar(*(value if value is not None else "" for value in row))

    def random_by_tag(self, tag: str) -> Grammar | None:
        """A random grammar point whose tag contains ``tag``, or None."""
        return self._pick("tag LIKE ?", (f"%{tag}%",))

    def random_by_keyword(self, keyword: str) -> Grammar | None:
        """A random grammar point whose name or reading contains ``keyword``, or None."""
        pattern = f"%{keyword}%"
        return self._pick("(name LIKE ? OR pronunciation LIKE ?)", (pattern, pattern))

    def close(self) -> None:
        """Close the database."""
        with self._lock:
            self._db.close()