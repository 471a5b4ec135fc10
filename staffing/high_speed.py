# -*- coding: utf-8 -*-
"""
高铁定员规则引擎
================
每趟高铁交路:
    1. 编组 (+运行时间) 匹配规则
    2. 无商务座车厢时商务座服务员强制为 0
    3. 组数 × 调整系数 (基准工时 / 本标准工时)
    4. 精确定员 = Σ岗位人数 × 调整后组数, 显示值按比例分配并对齐到 ceil(精确定员)
"""
import logging
from collections import Counter
from typing import Any, Dict, Iterable, List

from staffing import extractor
from staffing.aggregation import group_by_sequence, representatives
from staffing.allocation import distribute_display
from staffing.engine import MainProductionEngine
from staffing.matching import HighSpeedMatcher
from staffing.models import HIGH_SPEED, HighSpeedRule, TrainRecord, TrainStaffingResult

logger = logging.getLogger(__name__)

BASE_ROLES = ("train_conductor", "train_attendant", "business_class_attendant")

# 差额优先补给列车员, 其次列车长, 最后商务座/其他岗位
DISPLAY_PRIORITY = ("train_attendant", "train_conductor", "business_class_attendant")

ANALYSIS_SAMPLES = 5


class HighSpeedRuleEngine(MainProductionEngine):
    family = HIGH_SPEED
    roles = BASE_ROLES

    def _build_matcher(self):
        return HighSpeedMatcher(self.standard.high_speed_rules, self.fields)

    def adjustment_factor(self) -> float:
        reference = self.params.reference_work_hours
        hours = self.standard.standard_work_hours
        if not reference or not hours or hours <= 0:
            logger.warning("标准 %s 缺少标准工时, 调整系数按 1 计算", self.standard.name)
            return 1.0
        return reference / hours

    def _crew(self, rule: HighSpeedRule, record: TrainRecord, warnings: List[str]) -> Dict[str, float]:
        crew = {role: float(rule.staffing.get(role, 0)) for role in BASE_ROLES}
        for role, count in rule.staffing.items():
            if role not in crew:
                crew[role] = float(count)

        configured = crew["business_class_attendant"]
        if configured > 0:
            has_cars = (extractor.has_business_class(record, self.fields)
                        and extractor.extract_business_class_count(record, self.fields) > 0)
            if not has_cars:
                crew["business_class_attendant"] = 0.0
                warnings.append(f"该列车无商务座车厢, 商务座服务员由 {configured:g} 人调整为 0")
        return crew

    def calculate_train_staffing(self, record: TrainRecord) -> TrainStaffingResult:
        original_groups = extractor.extract_group_count(record, self.fields)
        match = self.match_rule(record)
        if match is None:
            return self._unmatched_result(record, original_groups)

        warnings: List[str] = []
        crew = self._crew(match.rule, record, warnings)
        factor = self.adjustment_factor()
        groups = original_groups * factor
        if factor != 1:
            warnings.append(f"组数已按标准工时调整: {original_groups:g} × {factor:.4f} = {groups:.4f}")

        exact = {role: count * groups for role, count in crew.items()}
        display = distribute_display(exact, DISPLAY_PRIORITY)
        exact["total"] = sum(crew.values()) * groups

        logger.debug("高铁 %s: 规则 %s, 组数 %.4f, 精确定员 %.4f -> %d",
                     extractor.extract_train_number(record, self.fields),
                     match.rule.name, groups, exact["total"], display["total"])

        return TrainStaffingResult(
            train_data=record,
            family=self.family,
            match=match,
            staffing=display,
            exact_staffing=exact,
            group_count=groups,
            original_group_count=original_groups,
            adjustment_factor=factor,
            is_matched=True,
            warnings=tuple(warnings),
        )

    def get_unmatched_analysis(self, records: Iterable[TrainRecord]) -> Dict[str, Any]:
        """按编组/时间类别统计未匹配的交路, 用于补充规则。"""
        groups = group_by_sequence(records, self.sequence_key)
        unmatched = [r for r in representatives(groups) if self.match_rule(r) is None]

        by_formation: Counter = Counter()
        by_time: Counter = Counter()
        samples = []
        for record in unmatched:
            formation = extractor.extract_formation(record, self.fields) or "未知编组"
            running_time = extractor.extract_running_time(record, self.fields)
            by_formation[formation] += 1
            by_time["12小时以下" if running_time < 12 else "12小时以上"] += 1
            if len(samples) < ANALYSIS_SAMPLES:
                samples.append({
                    "train_number": extractor.extract_train_number(record, self.fields),
                    "formation": formation,
                    "running_time": running_time,
                })

        return {
            "total_trains": len(groups),
            "unmatched_count": len(unmatched),
            "by_formation": dict(by_formation),
            "by_time_category": dict(by_time),
            "samples": samples,
        }
