# -*- coding: utf-8 -*-
"""
普速定员规则引擎
================
每组人员 (per-group staffing):
    列车长 + 各车厢类型列车员 (按比例, 仅当有该类车厢) + 运转车长 + 翻译
    + 广播员/列车值班员 + 行李员 + 餐车人员 + 售货员
精确定员 = 每组人员 × 组数, 普速不做工时调整。
"""
import logging
from typing import Dict, List

from staffing import extractor
from staffing.allocation import distribute_display, staff_by_ratio
from staffing.engine import MainProductionEngine
from staffing.extractor import CarCounts
from staffing.matching import ConventionalMatcher
from staffing.models import CONVENTIONAL, ConventionalRule, TrainRecord, TrainStaffingResult

logger = logging.getLogger(__name__)

ATTENDANT_ROLES = (
    "seat_car_attendant",
    "hard_sleeper_attendant",
    "soft_sleeper_attendant",
    "dining_car_attendant",
)

ROLES = (
    "train_conductor",
    *ATTENDANT_ROLES,
    "operation_conductor",
    "translator",
    "broadcaster",
    "train_duty_officer",
    "baggage_staff",
    "dining_car_staff",
    "sales_staff",
)

SUBTOTALS = {
    "train_attendants_total": ATTENDANT_ROLES,
    "additional_staff_total": ("broadcaster", "train_duty_officer"),
}

DISPLAY_PRIORITY = ATTENDANT_ROLES + ("train_conductor",)

# car type in the rule -> (attendant role, CarCounts attribute)
_CAR_TYPES = (
    ("seat_car", "seat_car_attendant", "seat"),
    ("hard_sleeper", "hard_sleeper_attendant", "hard_sleeper"),
    ("soft_sleeper", "soft_sleeper_attendant", "soft_sleeper"),
)


class ConventionalRuleEngine(MainProductionEngine):
    family = CONVENTIONAL
    roles = ROLES
    subtotals = SUBTOTALS
    with_per_group = True

    def _build_matcher(self):
        return ConventionalMatcher(self.standard.conventional_rules, self.params, self.fields)

    def per_group_staffing(self, rule: ConventionalRule, cars: CarCounts,
                           running_time: float) -> Dict[str, float]:
        crew = rule.staffing
        staff = {role: 0.0 for role in ROLES}
        staff["train_conductor"] = crew.train_conductor

        for car_type, role, attr in _CAR_TYPES:
            count = getattr(cars, attr)
            config = crew.attendants.get(car_type)
            if config is not None and count > 0:
                staff[role] = float(staff_by_ratio(config.ratio, count, config.min_staff))
                logger.debug("%s: %s × %d车 = %g", role, config.ratio, count, staff[role])

        staff["operation_conductor"] = crew.train_operator
        staff["translator"] = crew.translator
        staff["broadcaster"] = crew.broadcaster
        staff["train_duty_officer"] = crew.train_duty_officer

        if cars.baggage > 0:
            if rule.baggage_staff_when_has_baggage is not None:
                staff["baggage_staff"] = rule.baggage_staff_when_has_baggage
            elif crew.baggage_enabled:
                staff["baggage_staff"] = crew.baggage_per_train

        if crew.dining.enabled and cars.dining > 0:
            long_haul = running_time >= self.params.dining_long_haul_hours
            per_car = crew.dining.over_24h if long_haul else crew.dining.under_24h
            staff["dining_car_staff"] = per_car * cars.dining
            logger.debug("餐车人员: %g × %d节餐车 (长途=%s)", per_car, cars.dining, long_haul)

        if crew.sales_enabled and cars.dining == 0:
            staff["sales_staff"] = crew.sales_per_group

        return staff

    def calculate_train_staffing(self, record: TrainRecord) -> TrainStaffingResult:
        group_count = extractor.extract_group_count(record, self.fields)
        match = self.match_rule(record)
        if match is None:
            return self._unmatched_result(record, group_count)

        warnings: List[str] = []
        cars = extractor.extract_car_counts(record, self.fields)
        running_time = extractor.extract_running_time(record, self.fields)
        if cars.total == 0:
            warnings.append("未识别到车厢编组, 仅按固定岗位计算")

        per_group = self.per_group_staffing(match.rule, cars, running_time)
        exact = {role: count * group_count for role, count in per_group.items()}
        display = distribute_display(exact, DISPLAY_PRIORITY)
        exact["total"] = sum(per_group.values()) * group_count
        per_group["total"] = sum(per_group.values())

        logger.debug("普速 %s: 规则 %s, 每组 %s, 组数 %g",
                     extractor.extract_train_number(record, self.fields),
                     match.rule.name, per_group, group_count)

        return TrainStaffingResult(
            train_data=record,
            family=self.family,
            match=match,
            staffing=display,
            exact_staffing=exact,
            group_count=group_count,
            original_group_count=group_count,
            adjustment_factor=1.0,
            is_matched=True,
            warnings=tuple(warnings),
            per_group_staffing=per_group,
        )
