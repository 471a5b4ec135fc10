# -*- coding: utf-8 -*-
"""定员标准 JSON 读取测试"""
import logging

import pytest

from staffing.models import (
    StandardConfigError,
    conventional_rule_from_dict,
    high_speed_rule_from_dict,
    other_production_rule_from_dict,
    snake_case,
    standard_from_dict,
)


def test_snake_case():
    assert snake_case("trainConductor") == "train_conductor"
    assert snake_case("businessClassAttendant") == "business_class_attendant"


class TestStandardFromDict:

    def test_full_standard(self, standard_data):
        standard = standard_from_dict(standard_data)
        assert standard.id == "test-standard"
        assert standard.standard_work_hours == 166.6
        assert standard.main_reserve_rates == {"beijing": 8, "shijiazhuang": 8, "tianjin": 10}
        assert standard.other_reserve_rate == 5
        assert [r.id for r in standard.high_speed_rules] == ["hs-8-short", "hs-8-any"]
        assert len(standard.conventional_rules) == 2
        assert len(standard.other_production_rules) == 2
        assert standard.source["name"] == "测试标准"

    def test_legacy_single_reserve_rate(self):
        standard = standard_from_dict({"id": "old", "reserveRates": {"mainProduction": 6}})
        assert standard.main_reserve_rates == 6

    def test_missing_sections_default_to_empty(self):
        standard = standard_from_dict({"bureau": "tianjin"})
        assert standard.id == "tianjin"
        assert standard.high_speed_rules == ()
        assert standard.main_reserve_rates is None
        assert standard.standard_work_hours is None

    def test_not_a_mapping(self):
        with pytest.raises(StandardConfigError):
            standard_from_dict(["not", "a", "dict"])

    def test_rule_list_must_be_list(self):
        with pytest.raises(StandardConfigError):
            standard_from_dict({"id": "x", "highSpeedRules": {"a": 1}})


class TestRuleLoaders:

    def test_high_speed_rule(self):
        rule = high_speed_rule_from_dict({
            "conditions": {"formation": "8编组", "runningTime": {"min": "4", "max": None}},
            "staffing": {"trainConductor": 1, "trainAttendant": "3", "businessClassAttendant": None},
        }, index=2)
        assert rule.id == "hs-2"
        assert rule.formations == ("8编组",)
        assert rule.time_min == 4.0
        assert rule.time_max is None
        assert rule.staffing == {"train_conductor": 1.0, "train_attendant": 3.0}

    def test_conventional_rule(self, conventional_staffing):
        rule = conventional_rule_from_dict({
            "id": "k",
            "conditions": {"trainTypes": ["K快车"], "runningTimeRange": "12to24",
                           "baggageStaffWhenHasBaggage": 2},
            "staffing": conventional_staffing(),
        })
        crew = rule.staffing
        assert rule.running_time_range == "12to24"
        assert rule.baggage_staff_when_has_baggage == 2
        assert crew.attendants["seat_car"].ratio == "1人2车"
        assert crew.attendants["seat_car"].min_staff == 1
        assert crew.broadcaster == 1
        assert crew.dining.over_24h == 5
        assert crew.sales_enabled

    def test_legacy_car_staffing_takes_precedence(self):
        rule = conventional_rule_from_dict({
            "staffing": {
                "carStaffing": {"hardSeat": {"ratio": "1人1车", "count": 2}},
                "trainAttendants": {
                    "seatCar": {"ratio": "1人2车", "minStaff": 1},
                    "softSleeper": {"ratio": "1人2车", "minStaff": 1},
                },
            },
        })
        assert rule.staffing.attendants["seat_car"].ratio == "1人1车"
        assert rule.staffing.attendants["seat_car"].min_staff == 2
        assert rule.staffing.attendants["soft_sleeper"].ratio == "1人2车"

    def test_unknown_time_range_is_ignored(self, caplog):
        with caplog.at_level(logging.WARNING, logger="staffing.models"):
            rule = conventional_rule_from_dict({"name": "r", "conditions": {"runningTimeRange": "weekly"}})
        assert rule.running_time_range is None
        assert "weekly" in caplog.text

    def test_other_production_rule(self):
        rule = other_production_rule_from_dict({
            "name": "管理",
            "configType": "segmented_percentage",
            "config": {"segments": {"highSpeed": {"percentage": 3, "minValue": 1}}},
        })
        assert rule.config_type == "segmented_percentage"
        assert rule.segments["highSpeed"].percentage == 3
        assert rule.segments["highSpeed"].max_value is None
        assert "conventional" not in rule.segments
