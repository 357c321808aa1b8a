"""Random illustration lookups from the lolicon picture API."""

from __future__ import annotations

import json
import urllib.parse

API = "https://api.lolicon.app/setu/v2"
CAPACITY = 10
NOT_FOUND = "未找到相关内容, 换个tag试试吧"


class LoliconError(Exception):
    """The API reported an error or returned no picture."""


def api_url(tag: str | None = None) -> str:
    """The API address, asking for ``tag`` when one is given."""
    tag = (tag or "").strip()
    if not tag:
        return API
    return API + "?tag=" + urllib.parse.quote_plus(tag)


def _get(data, *path):
    for key in path:
        if isinstance(data, dict):
            data = data.get(key)
        elif isinstance(data, list) and isinstance(key, int) and 0 <= key < len(data):
            data = data[key]
        else:
            return None
    return data


def parse_image_url(payload: bytes | str | dict) -> str:
    """The original image URL from an API response, on the i.pixiv.re mirror.

    Raises LoliconError with the API's message, or when no picture was found.
    """
    if isinstance(payload, dict):
        data = payload
    else:
        try:
            data = json.loads(payload)
        except ValueError:
            data = None
    error = _get(data, "error")
    if isinstance(error, str) and error:
        raise LoliconError(error)
    url = _get(data, "data", 0, "urls", "original")
    if not isinstance(url, str) or not url:
        raise LoliconError(NOT_FOUND)
    return url.replace("i.pixiv.cat", "i.pixiv.re")