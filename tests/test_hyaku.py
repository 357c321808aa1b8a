import io

import pytest

from groupbot.hyaku import POEM_COUNT, Poem, load_poems, parse_poem_number, poem_assets

HEADER = "番号,歌人,上の句,下の句,上の句ひらがな,下の句ひらがな"


def make_csv(count=POEM_COUNT, start=1, fields=6):
    lines = [HEADER]
    for n in range(start, start + count):
        values = [str(n)] + [f"v{n}_{k}" for k in range(1, fields)]
        lines.append(",".join(values))
    return "\n".join(lines) + "\n"


def test_load_poems_reads_all():
    poems = load_poems(make_csv())
    assert len(poems) == POEM_COUNT
    assert poems[0].number == "1"
    assert poems[99].number == "100"
    assert poems[4].poet == "v5_1"


def test_load_poems_accepts_bytes_and_files():
    text = make_csv()
    assert load_poems(text.encode("utf-8")) == load_poems(io.StringIO(text))


def test_poem_string_layout():
    poem = Poem("1", "p", "u", "l", "uk", "lk")
    lines = str(poem).splitlines()
    assert lines[0] == "●番号：1"
    assert lines[1] == "◉歌人：p"
    assert lines[2] == "○上の句：u"
    assert lines[5] == "◎下の句ひらがな：lk"
    assert str(poem).endswith("\n")


def test_wrong_count_rejected():
    with pytest.raises(ValueError):
        load_poems(make_csv(count=99))


def test_wrong_order_rejected():
    with pytest.raises(ValueError):
        load_poems(make_csv(start=2))


def test_wrong_field_count_rejected():
    with pytest.raises(ValueError):
        load_poems(make_csv(fields=5))


def test_empty_rejected():
    with pytest.raises(ValueError):
        load_poems("")


def test_poem_assets():
    assert poem_assets(7) == ("img/007.jpg", "img/007.png")
    jpg, png = poem_assets(100)
    assert jpg.endswith("100.jpg") and png.endswith("100.png")


@pytest.mark.parametrize("text,expected", [("百人一首之12", 12), ("百人一首之 1", 1), ("百人一首之100", 100)])
def test_parse_poem_number(text, expected):
    assert parse_poem_number(text) == expected


@pytest.mark.parametrize("text", ["百人一首之0", "百人一首之101", "百人一首之x", "百人一首"])
def test_parse_poem_number_rejects(text):
    with pytest.raises(ValueError):
        parse_poem_number(text)