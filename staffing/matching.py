# -*- coding: utf-8 -*-
"""
规则匹配
========
每个匹配器持有一个有序的 "层" 列表，每层是一个函数:
    (attributes) -> MatchResult | None
按顺序执行, 第一个命中的层胜出; 同一层内按规则在规则表中的声明顺序取第一个。

高铁:
    1. 编组完全匹配(忽略大小写) + 有时间上下限的规则
    2. 编组完全匹配 + 不限时间的规则 (最不具体, 放在后面作兜底)
普速:
    1. 直达列车规则 (Z直达特快优先)
    2. 全条件匹配: 类型 + 时间范围 + 规则声明的国际联运/餐车条件
    3. 仅类型匹配: 类型 + 时间范围
    4. 正常列车兜底 (非国际联运): 时间范围相符的优先, 否则任意一条
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from staffing import extractor
from staffing.config import DEFAULT_PARAMS, StaffingParams
from staffing.extractor import CarCounts
from staffing.models import ConventionalRule, HighSpeedRule, MatchResult, TrainRecord

logger = logging.getLogger(__name__)

TIME_RANGE_LABELS = {
    "under4": "4小时以内",
    "4to12": "4-12小时",
    "12to24": "12-24小时",
    "over24": "24小时以上",
}


@dataclass(frozen=True)
class HighSpeedAttributes:
    formation: Optional[str]
    running_time: float


@dataclass(frozen=True)
class ConventionalAttributes:
    train_type: Optional[str]
    running_time: float
    time_range: str
    is_international: bool
    car_counts: CarCounts


Tier = Tuple[str, Callable]


# ---------------------------------------------------------------------------
# High-speed
# ---------------------------------------------------------------------------

class HighSpeedMatcher:

    def __init__(self, rules: Sequence[HighSpeedRule], fields=extractor.FIELDS):
        self.rules = tuple(rules)
        self.fields = fields
        self.tiers: List[Tier] = [
            ("formation_time", self._bounded_tier),
            ("formation_any_time", self._unbounded_tier),
        ]

    def attributes(self, record: TrainRecord) -> HighSpeedAttributes:
        return HighSpeedAttributes(
            formation=extractor.extract_formation(record, self.fields),
            running_time=extractor.extract_running_time(record, self.fields),
        )

    def match(self, record: TrainRecord) -> Optional[MatchResult]:
        if not self.rules:
            return None
        attrs = self.attributes(record)
        if not attrs.formation:
            return None
        for name, tier in self.tiers:
            result = tier(attrs)
            if result is not None:
                logger.debug("高铁规则匹配 [%s]: %s -> %s", name, attrs.formation, result.rule.name)
                return result
        return None

    @staticmethod
    def _formation_matches(rule, formation):
        target = formation.strip().lower()
        return any(target == f.strip().lower() for f in rule.formations)

    @staticmethod
    def _time_conditions(rule, running_time):
        """Matched time conditions, or None when a bound is violated."""
        conditions = []
        if rule.time_min is not None:
            if running_time < rule.time_min:
                return None
            conditions.append(f"时间 >= {rule.time_min:g}小时")
        if rule.time_max is not None:
            if running_time > rule.time_max:
                return None
            conditions.append(f"时间 <= {rule.time_max:g}小时")
        return conditions

    def evaluate(self, rule: HighSpeedRule, attrs: HighSpeedAttributes,
                 tier: str = "") -> Optional[MatchResult]:
        # 编组不符立即返回, 不再检查时间
        if not attrs.formation or not self._formation_matches(rule, attrs.formation):
            return None
        time_conditions = self._time_conditions(rule, attrs.running_time)
        if time_conditions is None:
            return None
        if rule.is_time_unbounded:
            time_conditions = ["时间: 不限制"]
        return MatchResult(
            rule=rule,
            matched_conditions=(f"编组完全匹配: {attrs.formation}", *time_conditions),
            tier=tier,
        )

    def _first(self, attrs, rules, tier_name):
        for rule in rules:
            result = self.evaluate(rule, attrs, tier_name)
            if result is not None:
                return result
        return None

    def _bounded_tier(self, attrs):
        return self._first(attrs, [r for r in self.rules if not r.is_time_unbounded], "formation_time")

    def _unbounded_tier(self, attrs):
        return self._first(attrs, [r for r in self.rules if r.is_time_unbounded], "formation_any_time")

    def explain_miss(self, record: TrainRecord) -> Tuple[str, str]:
        """(reason, suggested_action) for a train no tier accepted."""
        attrs = self.attributes(record)
        if not attrs.formation:
            return "缺少编组信息, 无法匹配定员规则", "请检查列车编组信息是否完整"
        category = "12小时以下" if attrs.running_time < 12 else "12小时以上"
        reason = f"未找到匹配的定员规则: 编组 {attrs.formation}, 运行时间 {attrs.running_time:.1f}小时"
        return reason, f'建议为 "{attrs.formation}" 编组配置 "{category}" 的定员规则'


# ---------------------------------------------------------------------------
# Conventional
# ---------------------------------------------------------------------------

class ConventionalMatcher:

    def __init__(self, rules: Sequence[ConventionalRule], params: StaffingParams = DEFAULT_PARAMS,
                 fields=extractor.FIELDS):
        self.rules = tuple(rules)
        self.params = params
        self.fields = fields
        self.tiers: List[Tier] = [
            ("through_train", self._through_tier),
            ("full_condition", self._full_tier),
            ("type_only", self._type_tier),
            ("normal_fallback", self._normal_tier),
        ]

    def attributes(self, record: TrainRecord) -> ConventionalAttributes:
        running_time = extractor.extract_running_time(record, self.fields)
        return ConventionalAttributes(
            train_type=extractor.extract_train_type(record, self.params, self.fields),
            running_time=running_time,
            time_range=extractor.time_bucket(running_time),
            is_international=extractor.is_international(record, self.fields),
            car_counts=extractor.extract_car_counts(record, self.fields),
        )

    def match(self, record: TrainRecord) -> Optional[MatchResult]:
        if not self.rules:
            return None
        attrs = self.attributes(record)
        for name, tier in self.tiers:
            result = tier(attrs)
            if result is not None:
                logger.debug("普速规则匹配 [%s]: %s/%s -> %s",
                             name, attrs.train_type, attrs.time_range, result.rule.name)
                return result
        return None

    @staticmethod
    def _time_ok(rule, attrs):
        return rule.running_time_range is None or rule.running_time_range == attrs.time_range

    def _is_through_rule(self, rule):
        return self.params.through_rule_type in rule.train_types

    @staticmethod
    def _result(rule, tier, *conditions):
        return MatchResult(rule=rule, matched_conditions=tuple(conditions), tier=tier)

    def _through_tier(self, attrs):
        if attrs.train_type != self.params.through_train_category:
            return None
        for rule in self.rules:
            if self._is_through_rule(rule) and self._time_ok(rule, attrs):
                return self._result(rule, "through_train",
                                    f"类型: {attrs.train_type}(直达列车优先)",
                                    f"时间范围: {attrs.time_range}")
        return None

    def _declared_conditions_hold(self, rule, attrs):
        if rule.is_international is not None and bool(rule.is_international) != attrs.is_international:
            return False
        if rule.has_restaurant is not None and bool(rule.has_restaurant) != (attrs.car_counts.dining > 0):
            return False
        return True

    def _full_tier(self, attrs):
        if not attrs.train_type:
            return None
        for rule in self.rules:
            if self._is_through_rule(rule):
                continue
            if attrs.train_type not in rule.train_types or not self._time_ok(rule, attrs):
                continue
            if not self._declared_conditions_hold(rule, attrs):
                continue
            return self._result(rule, "full_condition",
                                f"类型: {attrs.train_type}", f"时间范围: {attrs.time_range}")
        return None

    def _type_tier(self, attrs):
        if not attrs.train_type:
            return None
        for rule in self.rules:
            if attrs.train_type in rule.train_types and self._time_ok(rule, attrs):
                return self._result(rule, "type_only",
                                    f"类型: {attrs.train_type}", f"时间范围: {attrs.time_range}")
        return None

    def _normal_tier(self, attrs):
        if attrs.is_international:
            return None
        normal_rules = [r for r in self.rules if self.params.normal_rule_type in r.train_types]
        for rule in normal_rules:
            if self._time_ok(rule, attrs):
                return self._result(rule, "normal_fallback",
                                    f"{self.params.normal_rule_type}兜底", f"时间范围: {attrs.time_range}")
        if normal_rules:
            return self._result(normal_rules[0], "normal_fallback",
                                f"{self.params.normal_rule_type}兜底(不限时间)")
        return None

    def explain_miss(self, record: TrainRecord) -> Tuple[str, str]:
        attrs = self.attributes(record)
        label = TIME_RANGE_LABELS[attrs.time_range]
        if not attrs.train_type:
            return ("无法识别普速列车类型, 无法匹配定员规则",
                    "请检查列车类别或车次信息是否完整")
        reason = f"未找到匹配的定员规则: 类型 {attrs.train_type}, 运行时间 {label}"
        return reason, f'建议为 "{attrs.train_type}" 配置 "{label}" 的定员规则'
