# -*- coding: utf-8 -*-
"""
Flatten calculation results into pandas DataFrames for report/export consumers.

    train_rows(result)          one row per working, display roles as columns
    role_summary(result)        one row per role: exact sum and display value
    other_production_rows(res)  one row per applied other-production rule
    unit_overview(calcs)        one row per unit: family totals and coverage
"""
from typing import Mapping

import pandas as pd

from staffing import extractor
from staffing.calculator import UnitCalculation
from staffing.models import OtherProductionUnitResult, UnitStaffingResult

TRAIN_COLUMNS = [
    "unit", "family", "sequence", "train_number", "formation", "running_time",
    "matched", "rule", "tier", "group_count", "adjustment_factor", "exact_total", "total", "warnings",
]


def train_rows(result: UnitStaffingResult, fields: extractor.FieldAccessor = extractor.FIELDS) -> pd.DataFrame:
    records = []
    for train in result.train_results:
        data = train.train_data
        row = {
            "unit": result.unit_name,
            "family": result.family,
            "sequence": extractor.extract_sequence(data, fields),
            "train_number": extractor.extract_train_number(data, fields),
            "formation": (extractor.extract_formation(data, fields)
                          or extractor.extract_formation_detail(data, fields)),
            "running_time": extractor.extract_running_time(data, fields),
            "matched": train.is_matched,
            "rule": train.rule_name,
            "tier": train.match.tier if train.match else None,
            "group_count": train.group_count,
            "adjustment_factor": train.adjustment_factor,
            "exact_total": train.exact_total,
            "total": train.total,
            "warnings": "; ".join(train.warnings),
        }
        for role, count in train.staffing.items():
            if role != "total":
                row[role] = count
        records.append(row)

    if not records:
        return pd.DataFrame(columns=TRAIN_COLUMNS)
    df = pd.DataFrame(records)
    role_columns = [c for c in df.columns if c not in TRAIN_COLUMNS]
    df[role_columns] = df[role_columns].fillna(0).astype(int)
    return df[TRAIN_COLUMNS + role_columns]


def role_summary(result: UnitStaffingResult) -> pd.DataFrame:
    summary = result.summary
    exact = pd.Series(summary.exact_staffing_breakdown, dtype=float)
    display = pd.Series(summary.staffing_breakdown, dtype=float)
    df = pd.DataFrame({"exact": exact, "display": display}).fillna(0.0)
    df["display"] = df["display"].astype(int)
    df.index.name = "role"
    return df.reset_index()


def other_production_rows(result: OtherProductionUnitResult) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "rule": applied.rule.name,
                "config_type": applied.rule.config_type,
                "staff": applied.calculated_staff,
                "calculation": applied.calculation,
            }
            for applied in result.applied_rules
        ],
        columns=["rule", "config_type", "staff", "calculation"],
    )


def unit_overview(calculations: Mapping[str, UnitCalculation]) -> pd.DataFrame:
    rows = [
        {
            "unit": name,
            "standard": calc.standard_name,
            "high_speed": calc.high_speed.summary.total_staff,
            "conventional": calc.conventional.summary.total_staff,
            "other_production": calc.other_production.total_staff,
            "total": calc.total_staff,
            "coverage_rate": calc.coverage_rate,
        }
        for name, calc in calculations.items()
    ]
    if rows:
        totals = {key: sum(row[key] for row in rows)
                  for key in ("high_speed", "conventional", "other_production", "total")}
        rows.append({"unit": "合计", "standard": "", **totals, "coverage_rate": None})
    return pd.DataFrame(rows, columns=["unit", "standard", "high_speed", "conventional",
                                       "other_production", "total", "coverage_rate"])
