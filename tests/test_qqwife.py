from datetime import datetime, timedelta

import pytest

from groupbot.qqwife import (
    Refusal,
    check_divorce,
    check_matchmaking,
    check_mistress,
    check_propose,
)
from groupbot.registry import MarriageRegistry

GID = 100


class _Clock:
    def __init__(self) -> None:
        self.moment = datetime(2022, 10, 15, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.moment


@pytest.fixture
def clock():
    return _Clock()


@pytest.fixture
def fresh(tmp_path, clock):
    registry = MarriageRegistry(tmp_path / "wife.db", now=clock)
    yield registry
    registry.close()


@pytest.fixture
def registry(fresh):
    fresh.open_day(GID)
    return fresh


def _reason(call, *args):
    with pytest.raises(Refusal) as info:
        call(*args)
    return info.value.reason


def test_propose_on_fresh_day_allowed(fresh):
    assert check_propose(fresh, GID, 1, 2) is True


def test_propose_cooldown(registry):
    registry.write_cd_time(GID, 1, 1)
    assert _reason(check_propose, registry, GID, 1, 2) == "你的技能还在CD中..."


def test_propose_cooldown_expires(registry, clock):
    registry.write_cd_time(GID, 1, 1)
    clock.moment += timedelta(hours=13)
    assert check_propose(registry, GID, 1, 2) is True


def test_propose_disabled(registry):
    registry.set_mode(GID, "自由恋爱", 0)
    assert _reason(check_propose, registry, GID, 1, 2) == "你群包分配,别在娶妻上面下功夫，好好水群"


def test_propose_states(registry):
    registry.register(GID, 1, 2, "a", "b")
    assert _reason(check_propose, registry, GID, 1, 2) == "笨蛋！你们已经在一起了！"
    assert _reason(check_propose, registry, GID, 1, 3) == "笨蛋~你家里还有个吃白饭的w"
    assert _reason(check_propose, registry, GID, 2, 3) == "该是0就是0，当0有什么不好"
    assert _reason(check_propose, registry, GID, 3, 2) == "ta被别人娶了，你来晚力"
    assert _reason(check_propose, registry, GID, 3, 1) == "他有别的女人了，你该放下了"
    assert check_propose(registry, GID, 3, 4) is True


def test_propose_single_by_choice(registry):
    registry.register(GID, 5, 0, "", "")
    assert _reason(check_propose, registry, GID, 5, 6) == "今天的你是单身贵族噢"
    assert _reason(check_propose, registry, GID, 6, 5) == "今天的ta是单身贵族噢"


def test_mistress_fresh_day_refused(fresh):
    assert _reason(check_mistress, fresh, GID, 1, 2) == "ta现在还是单身哦，快向ta表白吧！"


def test_mistress_disabled(registry):
    registry.set_mode(GID, "牛头人", 0)
    assert _reason(check_mistress, registry, GID, 1, 2) == "你群发布了牛头人禁止令，放弃吧"


def test_mistress_single_target(registry):
    assert _reason(check_mistress, registry, GID, 1, 2) == "ta现在还是单身哦，快向ta表白吧！"
    assert check_mistress(registry, GID, 1, 1) is True


def test_mistress_married_target(registry):
    registry.register(GID, 1, 2, "a", "b")
    assert check_mistress(registry, GID, 3, 2) is True
    assert check_mistress(registry, GID, 3, 1) is True
    registry.register(GID, 4, 5, "c", "d")
    assert _reason(check_mistress, registry, GID, 4, 2) == "打灭，不给纳小妾！"
    assert _reason(check_mistress, registry, GID, 5, 2) == "该是0就是0，当0有什么不好"


def test_divorce(registry):
    assert _reason(check_divorce, registry, GID, 1) == "今天你还没结婚哦"
    registry.register(GID, 1, 2, "a", "b")
    assert check_divorce(registry, GID, 1) is True
    assert check_divorce(registry, GID, 2) is True
    registry.write_cd_time(GID, 1, 4)
    assert _reason(check_divorce, registry, GID, 1) == "你的技能还在CD中..."


def test_matchmaking_self_and_same(registry):
    assert _reason(check_matchmaking, registry, GID, 1, 1, 2) == "禁止自己给自己做媒!"
    assert _reason(check_matchmaking, registry, GID, 1, 2, 1) == "禁止自己给自己做媒!"
    assert _reason(check_matchmaking, registry, GID, 1, 2, 2) == "你这个媒人XP很怪咧，不能这样噢"


def test_matchmaking_fresh_day(fresh):
    assert check_matchmaking(fresh, GID, 1, 2, 3) is True


def test_matchmaking_states(registry):
    assert check_matchmaking(registry, GID, 1, 2, 3) is True
    registry.register(GID, 2, 3, "b", "c")
    assert _reason(check_matchmaking, registry, GID, 1, 2, 3) == "笨蛋！ta们已经在一起了！"
    assert _reason(check_matchmaking, registry, GID, 1, 2, 4) == "攻方不是单身,不允许给这种人做媒!"
    assert _reason(check_matchmaking, registry, GID, 1, 4, 3) == "受方不是单身,不允许给这种人做媒!"