"""Keyword image search: parsing results and formatting the caption parts."""

from __future__ import annotations

import json
import re
import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Iterable

SEARCH_API = "https://api.pixivel.moe/v2/pixiv/illust/search/{keyword}?page=0"

_HREF = re.compile(r'<a href=".*">')


class SearchError(Exception):
    """The search service reported an error or returned malformed data."""


@dataclass
class Tag:
    """An illustration tag and its optional translation."""

    name: str = ""
    translation: str = ""


@dataclass
class Illust:
    """One illustration from a search result."""

    id: int = 0
    title: str = ""
    alt_title: str = ""
    description: str = ""
    type: int = 0
    create_date: str = ""
    upload_date: str = ""
    sanity: int = 0
    width: int = 0
    height: int = 0
    page_count: int = 0
    tags: list[Tag] = field(default_factory=list)
    bookmarks: int = 0
    likes: int = 0
    comments: int = 0
    views: int = 0
    image: str = ""


@dataclass
class SearchResult:
    """The illustrations found for a keyword."""

    illusts: list[Illust] = field(default_factory=list)
    scores: list[float] = field(default_factory=list)
    has_next: bool = False


def search_url(keyword: str) -> str:
    """The search API address for ``keyword``."""
    return SEARCH_API.format(keyword=urllib.parse.quote_plus(keyword))


def _illust(raw: dict[str, Any]) -> Illust:
    stats = raw.get("statistic") or {}
    return Illust(
        id=int(raw.get("id", 0)),
        title=raw.get("title", ""),
        alt_title=raw.get("altTitle", ""),
        description=raw.get("description", ""),
        type=int(raw.get("type", 0)),
        create_date=raw.get("createDate", ""),
        upload_date=raw.get("uploadDate", ""),
        sanity=int(raw.get("sanity", 0)),
        width=int(raw.get("width", 0)),
        height=int(raw.get("height", 0)),
        page_count=int(raw.get("pageCount", 0)),
        tags=[Tag(t.get("name", ""), t.get("translation", "")) for t in raw.get("tags") or []],
        bookmarks=int(stats.get("bookmarks", 0)),
        likes=int(stats.get("likes", 0)),
        comments=int(stats.get("comments", 0)),
        views=int(stats.get("views", 0)),
        image=raw.get("image", ""),
    )


def parse_search_result(payload: bytes | str | dict) -> SearchResult:
    """Parse a search response; raise SearchError if it reports an error."""
    if isinstance(payload, dict):
        data = payload
    else:
        try:
            data = json.loads(payload)
        except ValueError as err:
            raise SearchError(str(err)) from err
    if not isinstance(data, dict):
        raise SearchError("unexpected response")
    if data.get("error"):
        raise SearchError(data.get("message", ""))
    body = data.get("data") or {}
    try:
        return SearchResult(
            illusts=[_illust(item) for item in body.get("illusts") or []],
            scores=[float(s) for s in body.get("scores") or []],
            has_next=bool(body.get("has_next", False)),
        )
    except (TypeError, ValueError, AttributeError) as err:
        raise SearchError(str(err)) from err


def clean_description(text: str) -> str:
    """Strip the HTML of an illustration description down to plain lines."""
    text = text.replace("<br />", "\n").replace("</a>", "")
    return _HREF.sub("", text)


def format_tags(tags: Iterable[Tag]) -> str:
    """Each tag on its own line as ``#name (translation)``."""
    parts = []
    for tag in tags:
        line = "\n#" + tag.name
        if tag.translation:
            line += f" ({tag.translation})"
        parts.append(line)
    return "".join(parts)


def image_name(url: str) -> str:
    """The file name of an image URL without its four-character extension."""
    return url[url.rfind("/") + 1 : len(url) - 4]