# -*- coding: utf-8 -*-
"""DataFrame 报表输出测试"""
import pandas as pd
import pytest

from staffing.calculator import StaffingCalculator
from staffing.high_speed import HighSpeedRuleEngine
from staffing.reporting import TRAIN_COLUMNS, other_production_rows, role_summary, train_rows, unit_overview


class TestTrainRows:

    def test_one_row_per_working(self, standard, hs_record):
        records = [hs_record(1), hs_record(1, 车次="G1-detail"), hs_record(2, 编组="4编组")]
        result = HighSpeedRuleEngine(standard).calculate_unit_staffing(records)
        df = train_rows(result)

        assert len(df) == 2
        assert list(df.columns[:len(TRAIN_COLUMNS)]) == TRAIN_COLUMNS
        assert df["matched"].tolist() == [True, False]
        assert df.loc[0, "rule"] == "8编组短途"
        assert df.loc[0, "tier"] == "formation_time"
        assert df.loc[0, "train_attendant"] == 2
        assert df.loc[1, "total"] == 0
        assert "未找到匹配的定员规则" in df.loc[1, "warnings"]

    def test_role_columns_are_integers(self, standard, hs_record):
        result = HighSpeedRuleEngine(standard).calculate_unit_staffing([hs_record(组数=1.5)])
        df = train_rows(result)
        assert pd.api.types.is_integer_dtype(df["train_conductor"])

    def test_empty_result(self, standard):
        df = train_rows(HighSpeedRuleEngine(standard).calculate_unit_staffing([]))
        assert df.empty
        assert list(df.columns) == TRAIN_COLUMNS


def test_role_summary(standard, hs_record):
    result = HighSpeedRuleEngine(standard).calculate_unit_staffing([hs_record(1, 组数=0.5), hs_record(2, 组数=0.5)])
    df = role_summary(result).set_index("role")

    assert df.loc["train_attendant", "exact"] == pytest.approx(2.0)
    assert df.loc["train_attendant", "display"] == 2
    assert df.loc["train_conductor", "display"] == 1


def test_other_production_rows(standard, hs_record):
    calc = StaffingCalculator(standard).calculate_unit("北京客运段", [hs_record()])
    df = other_production_rows(calc.other_production)

    assert df["rule"].tolist() == ["派班室", "管理人员"]
    assert df["staff"].tolist() == [4, 1]
    assert df.loc[0, "calculation"] == "固定配置 4人"


def test_unit_overview_appends_totals(standard, hs_record, conv_record):
    calculator = StaffingCalculator(standard)
    calculations = calculator.calculate_units({
        "北京客运段": {"highSpeed": [hs_record()], "conventional": [conv_record()]},
        "天津客运段": {"highSpeed": [hs_record(2)]},
    })
    df = unit_overview(calculations)

    assert df["unit"].tolist() == ["北京客运段", "天津客运段", "合计"]
    assert df.loc[0, "total"] == 51
    assert df.loc[2, "total"] == 61
    assert df.loc[2, "high_speed"] == 8
    assert pd.isna(df.loc[2, "coverage_rate"])


def test_unit_overview_empty():
    df = unit_overview({})
    assert df.empty
    assert "coverage_rate" in df.columns
