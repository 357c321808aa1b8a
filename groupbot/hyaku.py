"""The hundred poems of the Ogura Hyakunin Isshu."""

from __future__ import annotations

import csv
import io
import re
from dataclasses import astuple, dataclass
from typing import IO

BED = "https://gitcode.net/u011570312/OguraHyakuninIsshu/-/raw/master/"
CSV_NAME = "小倉百人一首.csv"
POEM_COUNT = 100

_LABELS = (
    ("●", "番号"),
    ("◉", "歌人"),
    ("○", "上の句"),
    ("○", "下の句"),
    ("◎", "上の句ひらがな"),
    ("◎", "下の句ひらがな"),
)
_NUMBER = re.compile(r"百人一首之[\t\n\f\r ]?([0-9]+)\Z")
_ATOI = re.compile(r"[+-]?[0-9]+")


@dataclass
class Poem:
    """One poem: its number, poet, both halves and their kana readings."""

    number: str
    poet: str
    upper: str
    lower: str
    upper_kana: str
    lower_kana: str

    def __str__(self) -> str:
        return "".join(
            f"{mark}{label}：{value}\n" for (mark, label), value in zip(_LABELS, astuple(self))
        )


def load_poems(source: str | bytes | IO[str]) -> list[Poem]:
    """Read the hundred poems from CSV text with a title row.

    Raises ValueError unless there are exactly 100 numbered rows of 6 fields in order.
    """
    if isinstance(source, bytes):
        source = source.decode("utf-8")
    text = source if isinstance(source, str) else source.read()
    records = list(csv.reader(io.StringIO(text)))
    if not records:
        raise ValueError("invalid csvfile")
    width = len(records[0])
    rows = records[1:]
    if len(rows) != POEM_COUNT:
        raise ValueError("invalid csvfile")
    poems = []
    for index, row in enumerate(rows):
        if len(row) != width or len(row) != 6:
            raise ValueError("invalid csvfile")
        if not _ATOI.fullmatch(row[0]):
            raise ValueError(f"invalid poem number: {row[0]!r}")
        if int(row[0]) - 1 != index:
            raise ValueError("invalid csvfile")
        poems.append(Poem(*row))
    return poems


def poem_assets(number: int) -> tuple[str, str]:
    """The card picture and the calligraphy image paths of a poem, relative to BED."""
    return f"img/{number:03d}.jpg", f"img/{number:03d}.png"


def parse_poem_number(text: str) -> int:
    """The poem number asked for by "百人一首之n"; raise ValueError if absent or not 1-100."""
    match = _NUMBER.match(text)
    if match is None:
        raise ValueError(f"not a poem request: {text!r}")
    number = int(match.group(1))
    if number < 1 or number > POEM_COUNT:
        raise ValueError("超出范围")
    return number