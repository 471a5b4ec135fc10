# -*- coding: utf-8 -*-
"""
定员标准与计算结果的数据模型
============================
StaffingStandard 及三类规则由规则配置界面以 JSON 形式保存 (camelCase 键名)，
这里负责把它读成只读的 dataclass。计算结果同样是 frozen dataclass，
重新计算时整体替换，不做原地修改。
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from staffing.utils import to_number

logger = logging.getLogger(__name__)

TrainRecord = Mapping[str, Any]

HIGH_SPEED = "highSpeed"
CONVENTIONAL = "conventional"

TIME_RANGES = ("under4", "4to12", "12to24", "over24")
OTHER_CONFIG_TYPES = ("percentage", "fixed", "formula", "segmented_percentage")


class StandardConfigError(ValueError):
    """The persisted standard cannot be read at all."""


def snake_case(name):
    """trainConductor -> train_conductor"""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HighSpeedRule:
    id: str
    name: str
    formations: Tuple[str, ...] = ()
    time_min: Optional[float] = None
    time_max: Optional[float] = None
    train_types: Tuple[str, ...] = ()
    special_types: Tuple[str, ...] = ()
    # role -> persons per group, in declared order
    staffing: Dict[str, float] = field(default_factory=dict)
    description: str = ""

    @property
    def is_time_unbounded(self):
        return (self.time_min is None or self.time_min <= 0) and self.time_max is None


@dataclass(frozen=True)
class CarRatio:
    ratio: str
    min_staff: float = 0


@dataclass(frozen=True)
class DiningCarConfig:
    enabled: bool = False
    under_24h: float = 0
    over_24h: float = 0


@dataclass(frozen=True)
class ConventionalCrew:
    train_conductor: float = 0
    # seat_car / hard_sleeper / soft_sleeper -> CarRatio
    attendants: Dict[str, CarRatio] = field(default_factory=dict)
    translator: float = 0
    train_operator: float = 0
    broadcaster: float = 0
    train_duty_officer: float = 0
    baggage_enabled: bool = False
    baggage_per_train: float = 0
    dining: DiningCarConfig = field(default_factory=DiningCarConfig)
    sales_enabled: bool = False
    sales_per_group: float = 0


@dataclass(frozen=True)
class ConventionalRule:
    id: str
    name: str
    train_types: Tuple[str, ...] = ()
    running_time_range: Optional[str] = None
    is_international: Optional[bool] = None
    has_restaurant: Optional[bool] = None
    baggage_staff_when_has_baggage: Optional[float] = None
    staffing: ConventionalCrew = field(default_factory=ConventionalCrew)
    notes: Tuple[str, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class Segment:
    percentage: float
    min_value: Optional[float] = None
    max_value: Optional[float] = None


@dataclass(frozen=True)
class OtherProductionRule:
    id: str
    name: str
    config_type: str
    percentage: Optional[float] = None
    fixed_count: Optional[float] = None
    formula: Optional[str] = None
    base_on: str = "mainProduction"  # 仅作说明, 不参与计算
    segments: Dict[str, Segment] = field(default_factory=dict)
    positions: Dict[str, float] = field(default_factory=dict)
    description: str = ""


@dataclass(frozen=True)
class StaffingStandard:
    id: str
    name: str
    bureau: str = "custom"
    standard_work_hours: Optional[float] = None
    # 新格式: {unit_key: percent}; 旧格式: 单一数字
    main_reserve_rates: Union[Dict[str, float], float, None] = None
    other_reserve_rate: Optional[float] = None
    high_speed_rules: Tuple[HighSpeedRule, ...] = ()
    conventional_rules: Tuple[ConventionalRule, ...] = ()
    other_production_rules: Tuple[OtherProductionRule, ...] = ()
    description: str = ""
    source: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MatchResult:
    rule: Union[HighSpeedRule, ConventionalRule]
    matched_conditions: Tuple[str, ...]
    tier: str


@dataclass(frozen=True)
class TrainStaffingResult:
    train_data: TrainRecord
    family: str
    match: Optional[MatchResult]
    staffing: Dict[str, int]           # 显示用整数, 含 total
    exact_staffing: Dict[str, float]   # 精确值, 含 total, 用于汇总
    group_count: float                 # 调整后的组数
    original_group_count: float
    adjustment_factor: float = 1.0
    is_matched: bool = False
    warnings: Tuple[str, ...] = ()
    per_group_staffing: Optional[Dict[str, float]] = None
    reason: str = ""
    suggested_action: str = ""

    @property
    def total(self):
        return self.staffing.get("total", 0)

    @property
    def exact_total(self):
        return self.exact_staffing.get("total", 0.0)

    @property
    def rule_name(self):
        return self.match.rule.name if self.match else None


@dataclass(frozen=True)
class UnmatchedTrain:
    train_data: TrainRecord
    reason: str
    suggested_action: str


@dataclass(frozen=True)
class UnitSummary:
    total_trains: int
    matched_trains: int
    unmatched_trains: int
    exact_base_total_staff: float
    base_total_staff: int
    reserve_rate: float          # fraction, 0.08 == 8%
    exact_total_staff: float
    total_staff: int
    coverage_rate: float         # percent
    staffing_breakdown: Dict[str, int] = field(default_factory=dict)
    exact_staffing_breakdown: Dict[str, float] = field(default_factory=dict)
    per_group_breakdown: Optional[Dict[str, float]] = None


@dataclass(frozen=True)
class UnitStaffingResult:
    unit_name: str
    family: str
    standard_id: str
    standard_name: str
    train_results: Tuple[TrainStaffingResult, ...]
    summary: UnitSummary
    unmatched_trains: Tuple[UnmatchedTrain, ...] = ()

    @property
    def matched_results(self):
        return [r for r in self.train_results if r.is_matched]


@dataclass(frozen=True)
class AppliedOtherRule:
    rule: OtherProductionRule
    calculated_staff: float
    calculation: str
    breakdown: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class OtherProductionUnitResult:
    unit_name: str
    standard_id: str
    standard_name: str
    high_speed_total_staff: int
    conventional_total_staff: int
    main_production_total: int
    applied_rules: Tuple[AppliedOtherRule, ...]
    base_total_staff: float
    reserve_rate: float
    total_staff: int
    calculated_at: datetime = field(default_factory=datetime.now, compare=False)


# ---------------------------------------------------------------------------
# Loading from the persisted JSON shape
# ---------------------------------------------------------------------------

def _num(value, default=0.0):
    parsed = to_number(value)
    return default if parsed is None else parsed


def _opt_num(value):
    return to_number(value)


def _str_tuple(value) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def high_speed_rule_from_dict(data: Mapping[str, Any], index: int = 0) -> HighSpeedRule:
    conditions = data.get("conditions") or {}
    running_time = conditions.get("runningTime") or {}
    staffing = {}
    for role, count in (data.get("staffing") or {}).items():
        value = to_number(count)
        if value is not None:
            staffing[snake_case(role)] = value
    return HighSpeedRule(
        id=str(data.get("id") or f"hs-{index}"),
        name=str(data.get("name") or f"高铁规则{index + 1}"),
        formations=_str_tuple(conditions.get("formation")),
        time_min=_opt_num(running_time.get("min")),
        time_max=_opt_num(running_time.get("max")),
        train_types=_str_tuple(conditions.get("trainType")),
        special_types=_str_tuple(conditions.get("specialType")),
        staffing=staffing,
        description=str(data.get("description") or ""),
    )


_LEGACY_CAR_KEYS = {"hardSeat": "seat_car", "hardSleeper": "hard_sleeper", "softSleeper": "soft_sleeper"}
_CAR_KEYS = {"seatCar": "seat_car", "hardSleeper": "hard_sleeper", "softSleeper": "soft_sleeper"}


def _attendant_ratios(staffing: Mapping[str, Any]) -> Dict[str, CarRatio]:
    ratios = {}
    # 旧版配置 carStaffing.{hardSeat,...}.{ratio,count} 优先, 与界面保存顺序一致
    legacy = staffing.get("carStaffing") or {}
    for key, name in _LEGACY_CAR_KEYS.items():
        cfg = legacy.get(key)
        if cfg:
            ratios[name] = CarRatio(str(cfg.get("ratio") or ""), _num(cfg.get("count")))
    current = staffing.get("trainAttendants") or {}
    for key, name in _CAR_KEYS.items():
        cfg = current.get(key)
        if cfg and name not in ratios:
            ratios[name] = CarRatio(str(cfg.get("ratio") or ""), _num(cfg.get("minStaff")))
    return ratios


def conventional_rule_from_dict(data: Mapping[str, Any], index: int = 0) -> ConventionalRule:
    conditions = data.get("conditions") or {}
    staffing = data.get("staffing") or {}
    additional = staffing.get("additionalStaff") or {}
    baggage = staffing.get("baggageStaffConfig") or {}
    dining = staffing.get("diningCarStaff") or {}
    dining_rules = dining.get("rules") or {}
    sales = staffing.get("salesStaff") or {}

    time_range = conditions.get("runningTimeRange") or None
    if time_range is not None and time_range not in TIME_RANGES:
        logger.warning("规则 %s 的运行时间范围无法识别: %r, 按不限时间处理", data.get("name"), time_range)
        time_range = None

    crew = ConventionalCrew(
        train_conductor=_num(staffing.get("trainConductor")),
        attendants=_attendant_ratios(staffing),
        translator=_num(staffing.get("translator")),
        train_operator=_num(staffing.get("trainOperator")),
        broadcaster=_num(additional.get("broadcaster")),
        train_duty_officer=_num(additional.get("trainDutyOfficer")),
        baggage_enabled=bool(baggage.get("enabled")),
        baggage_per_train=_num(baggage.get("staffPerTrain")),
        dining=DiningCarConfig(
            enabled=bool(dining.get("enabled")),
            under_24h=_num(dining_rules.get("under24h")),
            over_24h=_num(dining_rules.get("over24h")),
        ),
        sales_enabled=bool(sales.get("enabled")),
        sales_per_group=_num(sales.get("staffPerGroup")),
    )
    return ConventionalRule(
        id=str(data.get("id") or f"conv-{index}"),
        name=str(data.get("name") or f"普速规则{index + 1}"),
        train_types=_str_tuple(conditions.get("trainTypes")),
        running_time_range=time_range,
        is_international=conditions.get("isInternational"),
        has_restaurant=conditions.get("hasRestaurant"),
        baggage_staff_when_has_baggage=_opt_num(conditions.get("baggageStaffWhenHasBaggage")),
        staffing=crew,
        notes=_str_tuple(data.get("notes")),
        description=str(data.get("description") or ""),
    )


def _segment(data) -> Optional[Segment]:
    if not data:
        return None
    return Segment(
        percentage=_num(data.get("percentage")),
        min_value=_opt_num(data.get("minValue")),
        max_value=_opt_num(data.get("maxValue")),
    )


def other_production_rule_from_dict(data: Mapping[str, Any], index: int = 0) -> OtherProductionRule:
    config = data.get("config") or {}
    segments = {}
    for family in (HIGH_SPEED, CONVENTIONAL):
        seg = _segment((config.get("segments") or {}).get(family))
        if seg is not None:
            segments[family] = seg
    positions = {}
    for position, count in (data.get("positions") or {}).items():
        value = to_number(count)
        if value is not None:
            positions[str(position)] = value
    return OtherProductionRule(
        id=str(data.get("id") or f"other-{index}"),
        name=str(data.get("name") or f"其余生产规则{index + 1}"),
        config_type=str(data.get("configType") or ""),
        percentage=_opt_num(config.get("percentage")),
        fixed_count=_opt_num(config.get("fixedCount")),
        formula=config.get("formula"),
        base_on=str(config.get("baseOn") or "mainProduction"),
        segments=segments,
        positions=positions,
        description=str(data.get("description") or ""),
    )


def _reserve_rates(data: Mapping[str, Any]):
    rates = data.get("reserveRates") or {}
    main = rates.get("mainProduction")
    if isinstance(main, Mapping):
        per_unit = {}
        for unit_key, rate in main.items():
            value = to_number(rate)
            if value is not None:
                per_unit[str(unit_key)] = value
        main = per_unit
    elif main is not None:
        main = to_number(main)
    return main, to_number(rates.get("otherProduction"))


def standard_from_dict(data: Mapping[str, Any]) -> StaffingStandard:
    """Build a StaffingStandard from the rule-configuration JSON."""
    if not isinstance(data, Mapping):
        raise StandardConfigError("定员标准必须是 JSON 对象")
    for key in ("highSpeedRules", "conventionalRules", "otherProductionRules"):
        if data.get(key) is not None and not isinstance(data.get(key), list):
            raise StandardConfigError(f"{key} 必须是列表")

    main_rates, other_rate = _reserve_rates(data)
    standard_id = str(data.get("id") or data.get("bureau") or "custom")
    return StaffingStandard(
        id=standard_id,
        name=str(data.get("name") or standard_id),
        bureau=str(data.get("bureau") or "custom"),
        standard_work_hours=to_number(data.get("standardWorkHours")),
        main_reserve_rates=main_rates,
        other_reserve_rate=other_rate,
        high_speed_rules=tuple(
            high_speed_rule_from_dict(r, i) for i, r in enumerate(data.get("highSpeedRules") or [])
        ),
        conventional_rules=tuple(
            conventional_rule_from_dict(r, i) for i, r in enumerate(data.get("conventionalRules") or [])
        ),
        other_production_rules=tuple(
            other_production_rule_from_dict(r, i) for i, r in enumerate(data.get("otherProductionRules") or [])
        ),
        description=str(data.get("description") or ""),
        source=dict(data),
    )


def standards_from_list(items: List[Mapping[str, Any]]) -> List[StaffingStandard]:
    return [standard_from_dict(item) for item in items]
