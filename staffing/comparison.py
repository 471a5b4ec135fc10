# -*- coding: utf-8 -*-
"""
多标准对比
==========
同一份列车数据分别按多个定员标准计算, 然后:
    - 对比标准参数 (工时, 预备率, 规则数量)
    - 以第一个标准为基准计算总定员及各类别的差异
    - 识别关键差异因素并给出建议
    - 逐车次对比显示定员, 找出差异最大的交路并分类差异原因

差异分类只做客观描述, 不评价哪个标准更合理。
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from staffing import extractor
from staffing.aggregation import main_reserve_rate
from staffing.calculator import COMBINED_UNIT_NAME, StaffingCalculator, UnitCalculation, UnitData
from staffing.config import DEFAULT_PARAMS, StaffingParams
from staffing.models import StaffingStandard, TrainStaffingResult

logger = logging.getLogger(__name__)

WORK_HOURS_FACTOR_SPREAD = 10      # hours
RULE_COUNT_FACTOR_SPREAD = 5
RESERVE_RATE_SPREAD = 0.01         # fraction
WORK_HOURS_CLASSIFY_SPREAD = 5     # hours
COVERAGE_TARGET = 90.0             # percent
TOTAL_SPREAD_TARGET = 0.15

SEVERITY_HIGH = 20
SEVERITY_MEDIUM = 5

DIFFERENCE_TYPES = ("parameter_based", "rule_based", "match_status", "coverage_gap")


def calculate_standards(standards: Sequence[StaffingStandard], unit_data: UnitData,
                        unit_names: Optional[Sequence[str]] = None,
                        params: StaffingParams = DEFAULT_PARAMS,
                        fields: extractor.FieldAccessor = extractor.FIELDS) -> Dict[str, UnitCalculation]:
    """{standard_id: combined calculation over the selected units}, in the given order."""
    results = {}
    for standard in standards:
        calculator = StaffingCalculator(standard, params, fields)
        results[standard.id] = calculator.calculate_combined(unit_data, unit_names, COMBINED_UNIT_NAME)
    return results


def _reference_reserve_rate(standard: StaffingStandard, params: StaffingParams) -> float:
    reference_unit = next(iter(params.train_units))
    return main_reserve_rate(standard, reference_unit, params)


# ---------------------------------------------------------------------------
# Standard-level comparison
# ---------------------------------------------------------------------------

def compare_standard_parameters(standards: Sequence[StaffingStandard]) -> List[Dict[str, Any]]:
    rows = []
    for standard in standards:
        rates = standard.main_reserve_rates
        rows.append({
            "id": standard.id,
            "name": standard.name,
            "standard_work_hours": standard.standard_work_hours,
            "main_reserve_rates": dict(rates) if isinstance(rates, Mapping) else rates,
            "other_reserve_rate": standard.other_reserve_rate,
            "high_speed_rules": len(standard.high_speed_rules),
            "conventional_rules": len(standard.conventional_rules),
            "other_production_rules": len(standard.other_production_rules),
        })
    return rows


def analyze_staffing_differences(results: Mapping[str, UnitCalculation]) -> Optional[Dict[str, Any]]:
    """Differences of every standard against the first one. None with fewer than two."""
    calculations = list(results.values())
    if len(calculations) < 2:
        return None

    base = calculations[0]
    differences = []
    for calc in calculations[1:]:
        differences.append({
            "standard_id": calc.standard_id,
            "standard_name": calc.standard_name,
            "total_staff_diff": calc.total_staff - base.total_staff,
            "high_speed_diff": calc.high_speed.summary.total_staff - base.high_speed.summary.total_staff,
            "conventional_diff": calc.conventional.summary.total_staff - base.conventional.summary.total_staff,
            "other_production_diff": calc.other_production.total_staff - base.other_production.total_staff,
            "coverage_rate_diff": calc.coverage_rate - base.coverage_rate,
        })

    spreads = np.abs([d["total_staff_diff"] for d in differences])
    return {
        "base_standard": {"id": base.standard_id, "name": base.standard_name},
        "differences": differences,
        "max_difference": int(spreads.max()),
        "avg_difference": float(spreads.mean()),
    }


def identify_key_factors(standards: Sequence[StaffingStandard],
                         params: StaffingParams = DEFAULT_PARAMS) -> List[Dict[str, str]]:
    factors = []
    if not standards:
        return factors

    hours = [s.standard_work_hours for s in standards if s.standard_work_hours]
    if hours and max(hours) - min(hours) > WORK_HOURS_FACTOR_SPREAD:
        factors.append({
            "factor": "standard_work_hours",
            "description": "标准工时差异显著",
            "impact": "high",
            "details": f"工时范围: {min(hours):g}h - {max(hours):g}h",
        })

    rates = [_reference_reserve_rate(s, params) for s in standards]
    if max(rates) - min(rates) > RESERVE_RATE_SPREAD:
        factors.append({
            "factor": "reserve_rates",
            "description": "预备率设置差异较大",
            "impact": "medium",
            "details": f"预备率范围: {min(rates) * 100:.0f}% - {max(rates) * 100:.0f}%",
        })

    hs_counts = [len(s.high_speed_rules) for s in standards]
    conv_counts = [len(s.conventional_rules) for s in standards]
    hs_spread = max(hs_counts) - min(hs_counts)
    conv_spread = max(conv_counts) - min(conv_counts)
    if hs_spread > RULE_COUNT_FACTOR_SPREAD or conv_spread > RULE_COUNT_FACTOR_SPREAD:
        factors.append({
            "factor": "rules_count",
            "description": "规则数量差异可能影响覆盖率",
            "impact": "medium",
            "details": f"高铁规则差异: {hs_spread}, 普速规则差异: {conv_spread}",
        })
    return factors


def generate_recommendations(results: Mapping[str, UnitCalculation]) -> List[Dict[str, str]]:
    calculations = list(results.values())
    if not calculations:
        return []
    recommendations = []

    avg_coverage = float(np.mean([c.coverage_rate for c in calculations]))
    if avg_coverage < COVERAGE_TARGET:
        recommendations.append({
            "type": "coverage",
            "priority": "high",
            "title": "提高规则覆盖率",
            "description": f"当前平均覆盖率为{avg_coverage:.0f}%, 建议增加更多匹配规则以提高覆盖率",
        })

    totals = [c.total_staff for c in calculations]
    if min(totals) > 0:
        spread = (max(totals) - min(totals)) / min(totals)
        if spread > TOTAL_SPREAD_TARGET:
            recommendations.append({
                "type": "standardization",
                "priority": "medium",
                "title": "标准化定员计算方法",
                "description": f"不同标准间定员差异达{spread * 100:.0f}%, 建议统一关键参数设置",
            })

    leanest = min(calculations, key=lambda c: c.total_staff)
    recommendations.append({
        "type": "efficiency",
        "priority": "low",
        "title": "参考高效标准",
        "description": f"{leanest.standard_name}标准的定员最少({leanest.total_staff}人), 可考虑参考其配置优化其他标准",
    })
    return recommendations


def generate_difference_analysis(results: Mapping[str, UnitCalculation],
                                 standards: Sequence[StaffingStandard],
                                 params: StaffingParams = DEFAULT_PARAMS) -> Dict[str, Any]:
    return {
        "standard_comparison": compare_standard_parameters(standards),
        "staffing_differences": analyze_staffing_differences(results),
        "key_factors": identify_key_factors(standards, params),
        "recommendations": generate_recommendations(results),
    }


# ---------------------------------------------------------------------------
# Per-train differences
# ---------------------------------------------------------------------------

def _formation_label(record, fields):
    return (extractor.extract_formation(record, fields)
            or extractor.extract_formation_detail(record, fields)
            or "Unknown")


def _working_key(result: TrainStaffingResult, fields) -> tuple:
    record = result.train_data
    return (
        result.family,
        extractor.extract_train_number(record, fields),
        _formation_label(record, fields),
        round(extractor.extract_running_time(record, fields), 4),
    )


def _classify(entries: Mapping[str, Dict[str, Any]], standards: Sequence[StaffingStandard],
              params: StaffingParams):
    statuses = [e["is_matched"] for e in entries.values()]
    if len(set(statuses)) > 1:
        matched = sum(statuses)
        return "match_status", f"{matched}个标准匹配成功, {len(statuses) - matched}个标准未匹配"

    rules = {e["matched_rule"] for e in entries.values() if e["is_matched"]}
    if len(rules) > 1:
        return "rule_based", "不同标准匹配了不同的定员规则"

    hours = [s.standard_work_hours for s in standards if s.standard_work_hours]
    if hours and max(hours) - min(hours) > WORK_HOURS_CLASSIFY_SPREAD:
        return "parameter_based", f"标准工时设置不同({min(hours):g}-{max(hours):g}小时)"

    rates = [_reference_reserve_rate(s, params) for s in standards]
    if rates and max(rates) - min(rates) > RESERVE_RATE_SPREAD:
        return "parameter_based", f"预备率设置不同({min(rates) * 100:.0f}%-{max(rates) * 100:.0f}%)"

    return "coverage_gap", "规则覆盖范围或配置细节存在差异"


def _difference_stats(differences: List[Dict[str, Any]], total_workings: int) -> Dict[str, Any]:
    spreads = np.array([d["max_difference"] for d in differences], dtype=float)
    has_data = spreads.size > 0
    return {
        "total_trains_analyzed": total_workings,
        "trains_with_differences": len(differences),
        "trains_without_differences": total_workings - len(differences),
        "severity_distribution": {
            "high": int((spreads > SEVERITY_HIGH).sum()),
            "medium": int(((spreads >= SEVERITY_MEDIUM) & (spreads <= SEVERITY_HIGH)).sum()),
            "low": int(((spreads > 0) & (spreads < SEVERITY_MEDIUM)).sum()),
        },
        "type_distribution": {
            kind: sum(1 for d in differences if d["difference_type"] == kind) for kind in DIFFERENCE_TYPES
        },
        "average_difference": float(spreads.mean()) if has_data else 0.0,
        "max_difference_found": int(spreads.max()) if has_data else 0,
        "median_difference": float(np.median(spreads)) if has_data else 0.0,
    }


def analyze_train_differences(results: Mapping[str, UnitCalculation],
                              standards: Sequence[StaffingStandard],
                              params: StaffingParams = DEFAULT_PARAMS,
                              fields: extractor.FieldAccessor = extractor.FIELDS) -> Dict[str, Any]:
    """
    Compare the displayed total of each working across standards.

    A working is identified by (family, train number, formation, running time).
    Only workings whose totals differ are returned, largest spread first.
    """
    names = {s.id: s.name for s in standards}
    workings: Dict[tuple, Dict[str, Dict[str, Any]]] = {}
    for standard_id, calc in results.items():
        for result in (*calc.high_speed.train_results, *calc.conventional.train_results):
            entries = workings.setdefault(_working_key(result, fields), {})
            entries.setdefault(standard_id, {
                "standard_name": names.get(standard_id, calc.standard_name),
                "total_staff": result.total,
                "matched_rule": result.rule_name,
                "is_matched": result.is_matched,
                "position_breakdown": {k: v for k, v in result.staffing.items() if k != "total"},
            })

    differences = []
    for (family, train_number, formation, running_time), entries in workings.items():
        values = np.array([e["total_staff"] for e in entries.values()])
        spread = int(values.max() - values.min())
        if spread <= 0:
            continue
        mean = float(values.mean())
        difference_type, description = _classify(entries, standards, params)
        differences.append({
            "train_type": family,
            "train_number": train_number,
            "formation": formation,
            "running_time": running_time,
            "standard_results": entries,
            "max_difference": spread,
            "min_value": int(values.min()),
            "max_value": int(values.max()),
            "difference_range": f"{int(values.min())}-{int(values.max())}人",
            "difference_percentage": round(spread / mean * 100) if mean > 0 else 0,
            "difference_type": difference_type,
            "difference_description": description,
        })

    differences.sort(key=lambda d: d["max_difference"], reverse=True)
    logger.info("逐车次差异分析: %d 个交路, %d 个存在差异", len(workings), len(differences))
    return {"differences": differences, "stats": _difference_stats(differences, len(workings))}
