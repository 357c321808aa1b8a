"""Checks that decide whether a marriage skill may be used right now."""

from __future__ import annotations

from .registry import Couple, MarriageRegistry, Status

SKILL_PROPOSE = 1
SKILL_MISTRESS = 2
SKILL_MATCHMAKING = 3
SKILL_DIVORCE = 4


class Refusal(Exception):
    """A skill may not be used; ``reason`` is the message for the user."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def _check_cooldown(registry: MarriageRegistry, group_id: int, user_id: int, skill: int) -> None:
    hours = registry.get_cd_time(group_id)
    if not registry.compare_cd_time(group_id, user_id, skill, hours):
        raise Refusal("你的技能还在CD中...")


def _single_by_choice(couple: Couple | None, status: Status) -> bool:
    return status is not Status.SINGLE and couple is not None and (
        couple.target == 0 or couple.user == 0
    )


def _together(couple: Couple | None, status: Status, other: int) -> bool:
    if couple is None:
        return False
    return (status is Status.HUSBAND and couple.target == other) or (
        status is Status.WIFE and couple.user == other
    )


def check_propose(registry: MarriageRegistry, group_id: int, user_id: int, target: int) -> bool:
    """Allow ``user_id`` to propose to ``target``; raise Refusal otherwise."""
    _check_cooldown(registry, group_id, user_id, SKILL_PROPOSE)
    can_match, _ = registry.modes(group_id)
    if can_match == 0:
        raise Refusal("你群包分配,别在娶妻上面下功夫，好好水群")
    if registry.open_day(group_id):
        return True
    couple, status = registry.lookup(group_id, user_id)
    if _single_by_choice(couple, status):
        raise Refusal("今天的你是单身贵族噢")
    if _together(couple, status, target):
        raise Refusal("笨蛋！你们已经在一起了！")
    if status is Status.HUSBAND:
        raise Refusal("笨蛋~你家里还有个吃白饭的w")
    if status is Status.WIFE:
        raise Refusal("该是0就是0，当0有什么不好")
    other, other_status = registry.lookup(group_id, target)
    if other_status is Status.SINGLE:
        return True
    if _single_by_choice(other, other_status):
        raise Refusal("今天的ta是单身贵族噢")
    if other_status is Status.HUSBAND:
        raise Refusal("他有别的女人了，你该放下了")
    raise Refusal("ta被别人娶了，你来晚力")


def check_mistress(registry: MarriageRegistry, group_id: int, user_id: int, target: int) -> bool:
    """Allow ``user_id`` to try to take ``target`` from their partner; raise Refusal otherwise."""
    _check_cooldown(registry, group_id, user_id, SKILL_MISTRESS)
    _, can_ntr = registry.modes(group_id)
    if can_ntr == 0:
        raise Refusal("你群发布了牛头人禁止令，放弃吧")
    if registry.open_day(group_id):
        raise Refusal("ta现在还是单身哦，快向ta表白吧！")
    other, other_status = registry.lookup(group_id, target)
    if other_status is Status.SINGLE:
        if target == user_id:
            return True
        raise Refusal("ta现在还是单身哦，快向ta表白吧！")
    if _single_by_choice(other, other_status):
        raise Refusal("今天的ta是单身贵族噢")
    if _together(other, other_status, target):
        raise Refusal("笨蛋！你们已经在一起了！")
    couple, status = registry.lookup(group_id, user_id)
    if status is Status.SINGLE:
        return True
    if _single_by_choice(couple, status):
        raise Refusal("今天的你是单身贵族噢")
    if status is Status.HUSBAND:
        raise Refusal("打灭，不给纳小妾！")
    raise Refusal("该是0就是0，当0有什么不好")


def check_divorce(registry: MarriageRegistry, group_id: int, user_id: int) -> bool:
    """Allow a married ``user_id`` to divorce; raise Refusal otherwise."""
    _check_cooldown(registry, group_id, user_id, SKILL_DIVORCE)
    _, status = registry.lookup(group_id, user_id)
    if status is Status.SINGLE:
        raise Refusal("今天你还没结婚哦")
    return True


def check_matchmaking(
    registry: MarriageRegistry, group_id: int, user_id: int, one: int, zero: int
) -> bool:
    """Allow ``user_id`` to pair ``one`` with ``zero``; raise Refusal otherwise."""
    _check_cooldown(registry, group_id, user_id, SKILL_MATCHMAKING)
    if one == user_id or zero == user_id:
        raise Refusal("禁止自己给自己做媒!")
    if one == zero:
        raise Refusal("你这个媒人XP很怪咧，不能这样噢")
    if registry.open_day(group_id):
        return True
    first, first_status = registry.lookup(group_id, one)
    if _single_by_choice(first, first_status):
        raise Refusal("今天的攻方是单身贵族噢")
    if _together(first, first_status, zero):
        raise Refusal("笨蛋！ta们已经在一起了！")
    if first_status is not Status.SINGLE:
        raise Refusal("攻方不是单身,不允许给这种人做媒!")
    second, second_status = registry.lookup(group_id, zero)
    if second_status is Status.SINGLE:
        return True
    if _single_by_choice(second, second_status):
        raise Refusal("今天的你是单身贵族噢")
    raise Refusal("受方不是单身,不允许给这种人做媒!")