# -*- coding: utf-8 -*-
"""
人员分配
========
- 按车厢比例配置列车员: "1人1车"、"1人/2车"、"2人3车"、"1 per 2" ...
  人数 = max(ceil(车厢数 × 人 / 车), 最少人数), 比例无法识别时取最少人数。
- 显示值分配: 精确总数向上取整后按各岗位占比四舍五入, 差额逐人补给 (或扣减)
  当前人数最多的岗位 (人数相同时按 priority 顺序), 保证各岗位之和等于显示总数
  且没有负数。
"""
import logging
import re
from typing import Dict, Mapping, Optional, Sequence, Tuple

from staffing.utils import ceil_exact, round_half_up

logger = logging.getLogger(__name__)

_CN_RATIO = re.compile(r"^(\d+)人[/每]?(\d*)车")
_EN_RATIO = re.compile(r"^(\d+)\s*(?:persons?|people)?\s*(?:per|/)\s*(\d*)\s*(?:cars?)?$")


def parse_ratio(ratio: Optional[str]) -> Optional[Tuple[int, int]]:
    """'2人3车' -> (2, 3); '1人/车' -> (1, 1); unknown -> None"""
    if not ratio:
        return None
    text = str(ratio).strip().lower()
    match = _CN_RATIO.match(text.replace(" ", "")) or _EN_RATIO.match(text)
    if match is None:
        return None
    persons = int(match.group(1))
    cars = int(match.group(2)) if match.group(2) else 1
    if cars == 0:
        return None
    return persons, cars


def staff_by_ratio(ratio: Optional[str], car_count: int, min_staff: float = 0) -> float:
    parsed = parse_ratio(ratio)
    if parsed is None:
        logger.warning("无法识别的人员比例 %r, 使用最少人数 %s", ratio, min_staff)
        return min_staff
    persons, cars = parsed
    needed = -(-(int(car_count) * persons) // cars)
    return max(needed, min_staff)


def distribute_display(exact: Mapping[str, float], priority: Sequence[str] = ()) -> Dict[str, int]:
    """
    Integer display split of an exact per-role breakdown.

    Returns {role: int, ..., "total": ceil(sum(exact))}; the role values always
    add up to "total".
    """
    roles = list(exact.keys())
    exact_total = sum(exact.values())
    display_total = ceil_exact(exact_total) if exact_total > 0 else 0

    if display_total == 0:
        result = {role: 0 for role in roles}
        result["total"] = 0
        return result

    rounded = {
        role: round_half_up(display_total * exact[role] / exact_total)
        for role in roles
    }
    difference = display_total - sum(rounded.values())
    if difference:
        order = [r for r in priority if r in rounded] + [r for r in roles if r not in priority]
        rank = {role: i for i, role in enumerate(order)}
        step = 1 if difference > 0 else -1
        # 逐个调整, 任何岗位不会小于 0
        for _ in range(abs(difference)):
            candidates = order if step > 0 else [r for r in order if rounded[r] > 0]
            target = max(candidates, key=lambda role: (rounded[role], -rank[role]))
            rounded[target] += step

    result = {role: rounded[role] for role in roles}
    result["total"] = display_total
    return result
