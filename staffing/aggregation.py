# -*- coding: utf-8 -*-
"""
序号去重与单位汇总
==================
同一序号的多行 (表头行/明细行) 只算一趟交路, 取第一行作为代表参与计算。

汇总只在最后取整一次:
    base_total_staff = ceil(Σ exact)
    total_staff      = ceil(Σ exact × (1 + reserve_rate))
逐车取整后再求和会得到不同 (偏大) 的结果。
"""
import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from staffing.config import StaffingParams
from staffing.extractor import extract_sequence
from staffing.models import (
    StaffingStandard,
    TrainRecord,
    TrainStaffingResult,
    UnitStaffingResult,
    UnitSummary,
    UnmatchedTrain,
)
from staffing.utils import ceil_exact, round_half_up

logger = logging.getLogger(__name__)


def group_by_sequence(records: Iterable[TrainRecord],
                      key: Callable[[TrainRecord], str] = extract_sequence) -> Dict[str, List[TrainRecord]]:
    groups: Dict[str, List[TrainRecord]] = {}
    for record in records:
        groups.setdefault(key(record), []).append(record)
    return groups


def representatives(groups: Mapping[str, List[TrainRecord]]) -> List[TrainRecord]:
    return [rows[0] for rows in groups.values()]


def main_reserve_rate(standard: StaffingStandard, unit_name: str, params: StaffingParams) -> float:
    """主要生产预备率 (小数)。按客运段查找, 缺失时用默认值。"""
    default = params.default_main_reserve_rate / 100
    rates = standard.main_reserve_rates
    if rates is None:
        logger.warning("标准 %s 未配置主要生产预备率, 使用默认 %.0f%%",
                       standard.name, params.default_main_reserve_rate)
        return default
    if isinstance(rates, (int, float)):
        logger.warning("标准 %s 使用旧格式统一预备率 %s%%", standard.name, rates)
        return rates / 100

    unit_key = params.unit_key(unit_name)
    rate = rates.get(unit_key) if unit_key else None
    if rate is None:
        logger.warning("找不到单位 %s 的预备率, 使用默认 %.0f%%",
                       unit_name, params.default_main_reserve_rate)
        return default
    return rate / 100


def other_reserve_rate(standard: StaffingStandard, params: StaffingParams) -> float:
    rate = standard.other_reserve_rate
    if rate is None:
        logger.warning("标准 %s 未配置其余生产预备率, 使用默认 %.0f%%",
                       standard.name, params.default_other_reserve_rate)
        rate = params.default_other_reserve_rate
    return rate / 100


def _exact_sums(mappings: Iterable[Mapping[str, float]]) -> Dict[str, float]:
    sums: Dict[str, float] = {}
    for mapping in mappings:
        for role, value in mapping.items():
            if role == "total":
                continue
            sums[role] = sums.get(role, 0.0) + value
    return sums


def display_breakdown(exact: Mapping[str, float],
                      subtotals: Optional[Mapping[str, Sequence[str]]] = None) -> Dict[str, int]:
    display = {role: round_half_up(value) for role, value in exact.items()}
    for name, roles in (subtotals or {}).items():
        display[name] = round_half_up(sum(exact.get(role, 0.0) for role in roles))
    return display


def summarize_unit(
    unit_name: str,
    family: str,
    standard: StaffingStandard,
    train_results: Sequence[TrainStaffingResult],
    total_groups: int,
    reserve_rate: float,
    unmatched: Sequence[UnmatchedTrain],
    subtotals: Optional[Mapping[str, Sequence[str]]] = None,
    with_per_group: bool = False,
) -> UnitStaffingResult:
    matched = [r for r in train_results if r.is_matched]

    exact_base = sum(r.exact_total for r in matched)
    base_total_staff = ceil_exact(exact_base) if exact_base > 0 else 0
    exact_with_reserve = exact_base * (1 + reserve_rate)
    total_staff = ceil_exact(exact_with_reserve) if exact_with_reserve > 0 else 0
    coverage_rate = len(matched) / total_groups * 100 if total_groups > 0 else 100.0

    exact_breakdown = _exact_sums(r.exact_staffing for r in matched)

    per_group = None
    if with_per_group:
        per_group = _exact_sums(r.per_group_staffing or {} for r in matched)
        for name, roles in (subtotals or {}).items():
            per_group[name] = sum(per_group.get(role, 0.0) for role in roles)
        per_group["total_groups"] = sum(r.group_count for r in matched)

    summary = UnitSummary(
        total_trains=total_groups,
        matched_trains=len(matched),
        unmatched_trains=len(train_results) - len(matched),
        exact_base_total_staff=exact_base,
        base_total_staff=base_total_staff,
        reserve_rate=reserve_rate,
        exact_total_staff=exact_with_reserve,
        total_staff=total_staff,
        coverage_rate=coverage_rate,
        staffing_breakdown=display_breakdown(exact_breakdown, subtotals),
        exact_staffing_breakdown=exact_breakdown,
        per_group_breakdown=per_group,
    )

    logger.info(
        "%s %s 定员汇总: 精确基础 %.2f -> %d, 预备率 %.1f%%, 精确总定员 %.2f -> %d, 覆盖率 %.1f%%",
        unit_name, family, exact_base, base_total_staff, reserve_rate * 100,
        exact_with_reserve, total_staff, coverage_rate,
    )
    if unmatched:
        logger.warning("%s %s: %d 趟列车未匹配到定员规则", unit_name, family, len(unmatched))

    return UnitStaffingResult(
        unit_name=unit_name,
        family=family,
        standard_id=standard.id,
        standard_name=standard.name,
        train_results=tuple(train_results),
        summary=summary,
        unmatched_trains=tuple(unmatched),
    )
