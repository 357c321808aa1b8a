import json
import urllib.parse

import pytest

from groupbot.lolicon import API, NOT_FOUND, LoliconError, api_url, parse_image_url


def test_api_url_without_tag():
    assert api_url() == API
    assert api_url("   ") == API


def test_api_url_space_escaped():
    assert api_url("a b") == API + "?tag=a+b"


def test_api_url_round_trip():
    url = api_url(" 萝莉|少女 ")
    query = urllib.parse.urlsplit(url).query
    assert urllib.parse.parse_qs(query) == {"tag": ["萝莉|少女"]}


def test_parse_image_url_mirror_replaced():
    payload = json.dumps(
        {"error": "", "data": [{"urls": {"original": "https://i.pixiv.cat/img/1_p0.png"}}]}
    )
    assert parse_image_url(payload) == "https://i.pixiv.re/img/1_p0.png"


def test_parse_image_url_bytes():
    payload = json.dumps({"data": [{"urls": {"original": "https://i.pixiv.re/x.jpg"}}]}).encode()
    assert parse_image_url(payload) == "https://i.pixiv.re/x.jpg"


def test_parse_image_url_error_message():
    with pytest.raises(LoliconError) as info:
        parse_image_url({"error": "bad request", "data": []})
    assert str(info.value) == "bad request"


def test_parse_image_url_empty_data():
    with pytest.raises(LoliconError) as info:
        parse_image_url({"error": "", "data": []})
    assert str(info.value) == NOT_FOUND


def test_parse_image_url_invalid_json():
    with pytest.raises(LoliconError) as info:
        parse_image_url(b"not json")
    assert str(info.value) == NOT_FOUND