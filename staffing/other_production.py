# -*- coding: utf-8 -*-
"""
其余生产定员
============
以高铁、普速的单位总定员 (含预备率) 为基数, 逐条应用其余生产规则:
    percentage            ceil(主要生产 × p%)
    fixed                 固定人数
    segmented_percentage  高铁、普速分别 ceil(总数 × p%) 并按 min/max 限制, 再相加
    formula               仅支持 "k * 主要生产组"
最后按其余生产预备率 (默认 5%) 向上取整。
"""
import logging
import re
from typing import List, Optional

from staffing.aggregation import other_reserve_rate
from staffing.config import DEFAULT_PARAMS, StaffingParams
from staffing.models import (
    CONVENTIONAL,
    HIGH_SPEED,
    AppliedOtherRule,
    OtherProductionRule,
    OtherProductionUnitResult,
    Segment,
    StaffingStandard,
    UnitStaffingResult,
)
from staffing.utils import ceil_exact

logger = logging.getLogger(__name__)

FORMULA_RE = re.compile(r"(\d+(?:\.\d+)?)\s*\*\s*(?:主要生产组|mainProduction)")

SEGMENT_LABELS = {HIGH_SPEED: "高铁", CONVENTIONAL: "普速"}


def _clamp(value, segment: Segment):
    if segment.min_value and value < segment.min_value:
        value = segment.min_value
    if segment.max_value and value > segment.max_value:
        value = segment.max_value
    return value


def _ceil_percent(base, percentage):
    return ceil_exact(base * percentage / 100) if base > 0 and percentage > 0 else 0


def apply_rule(rule: OtherProductionRule, main_total: int,
               high_speed_total: int = 0, conventional_total: int = 0) -> AppliedOtherRule:
    """Apply one rule to the aggregated totals. Never raises; bad config yields 0."""
    if rule.config_type == "percentage":
        percentage = rule.percentage or 0
        staff = _ceil_percent(main_total, percentage)
        return AppliedOtherRule(rule, staff, f"{main_total}人 × {percentage:g}% = {staff}人")

    if rule.config_type == "fixed":
        staff = rule.fixed_count or 0
        return AppliedOtherRule(rule, staff, f"固定配置 {staff:g}人")

    if rule.config_type == "segmented_percentage":
        bases = {HIGH_SPEED: high_speed_total, CONVENTIONAL: conventional_total}
        parts, breakdown = [], {}
        for family in (HIGH_SPEED, CONVENTIONAL):
            segment = rule.segments.get(family)
            base = bases[family]
            if segment is None or base <= 0:
                continue
            part = _clamp(_ceil_percent(base, segment.percentage), segment)
            breakdown[family] = part
            parts.append(f"{SEGMENT_LABELS[family]}: {base}人 × {segment.percentage:g}% = {part:g}人")
        staff = sum(breakdown.values())
        calculation = " + ".join(parts) + f" = {staff:g}人" if parts else f"无有效配置 = {staff:g}人"
        return AppliedOtherRule(rule, staff, calculation, breakdown)

    if rule.config_type == "formula":
        formula = rule.formula or ""
        match = FORMULA_RE.search(formula)
        if match is None:
            logger.warning("其余生产规则 %s 公式无法解析: %r", rule.name, formula)
            return AppliedOtherRule(rule, 0, f"公式解析失败: {formula}")
        multiplier = float(match.group(1))
        staff = ceil_exact(main_total * multiplier) if main_total * multiplier > 0 else 0
        return AppliedOtherRule(rule, staff, f"{main_total}人 × {multiplier:g} = {staff}人")

    logger.warning("其余生产规则 %s 配置类型未知: %r", rule.name, rule.config_type)
    return AppliedOtherRule(rule, 0, "未知配置类型")


class OtherProductionRuleEngine:

    def __init__(self, standard: StaffingStandard, params: StaffingParams = DEFAULT_PARAMS):
        self.standard = standard
        self.params = params

    def reserve_rate(self) -> float:
        return other_reserve_rate(self.standard, self.params)

    def calculate_unit_staffing(self, high_speed_result: Optional[UnitStaffingResult],
                                conventional_result: Optional[UnitStaffingResult],
                                unit_name: str) -> OtherProductionUnitResult:
        hs_total = high_speed_result.summary.total_staff if high_speed_result else 0
        conv_total = conventional_result.summary.total_staff if conventional_result else 0
        main_total = hs_total + conv_total
        reserve_rate = self.reserve_rate()

        applied: List[AppliedOtherRule] = []
        if main_total == 0:
            logger.warning("%s 主要生产定员为 0, 不计算其余生产定员", unit_name)
        else:
            for rule in self.standard.other_production_rules:
                result = apply_rule(rule, main_total, hs_total, conv_total)
                logger.debug("其余生产规则 %s: %s", rule.name, result.calculation)
                applied.append(result)

        base = sum(r.calculated_staff for r in applied)
        exact_total = base * (1 + reserve_rate)
        total = ceil_exact(exact_total) if exact_total > 0 else 0
        logger.info("%s 其余生产定员: 主要生产 %d, 基础 %g, 预备率 %.1f%%, 最终 %d",
                    unit_name, main_total, base, reserve_rate * 100, total)

        return OtherProductionUnitResult(
            unit_name=unit_name,
            standard_id=self.standard.id,
            standard_name=self.standard.name,
            high_speed_total_staff=hs_total,
            conventional_total_staff=conv_total,
            main_production_total=main_total,
            applied_rules=tuple(applied),
            base_total_staff=base,
            reserve_rate=reserve_rate,
            total_staff=total,
        )
