"""Verdicts on image classification scores."""

from __future__ import annotations

from dataclasses import dataclass

HSO_IMAGE = "https://gchat.qpic.cn/gchatpic_new//--4234EDEC5F147A4C319A41149D7E0EA9/0"
THRESHOLD = 0.3


@dataclass
class Scores:
    """Probabilities of each category for one picture."""

    drawings: float = 0.0
    hentai: float = 0.0
    neutral: float = 0.0
    porn: float = 0.0
    sexy: float = 0.0


def _flags(scores: Scores) -> list[str]:
    flags = []
    if scores.hentai > THRESHOLD:
        flags.append(" hentai")
    if scores.porn > THRESHOLD:
        flags.append(" porn")
    if scores.sexy > THRESHOLD:
        flags.append(" hso")
    return flags


def judge(scores: Scores) -> str:
    """The verdict sent when a user asks for a picture to be rated."""
    if scores.neutral > THRESHOLD:
        return "普通哦"
    if scores.drawings > THRESHOLD or scores.neutral < THRESHOLD:
        kind = "二次元"
    else:
        kind = "三次元"
    return kind + "".join(_flags(scores))


def auto_judge(scores: Scores) -> str | None:
    """The verdict for automatic rating, or None when nothing needs saying."""
    if scores.neutral > THRESHOLD:
        return None
    kind = "二次元" if scores.drawings > THRESHOLD else "三次元"
    flags = _flags(scores)
    if not flags:
        return None
    return kind + "".join(flags)