# -*- coding: utf-8 -*-
"""普速定员引擎测试"""
import pytest

from staffing.conventional import ConventionalRuleEngine
from staffing.extractor import CarCounts


def conventional_standard(make_standard, staffing, **conditions):
    conditions.setdefault("trainTypes", ["K快车"])
    rule = {"id": "conv", "name": "普速", "conditions": conditions, "staffing": staffing}
    return make_standard(conventionalRules=[rule])


class TestPerGroupStaffing:

    def test_full_crew_for_sleeper_train(self, standard, conv_record):
        result = ConventionalRuleEngine(standard).calculate_train_staffing(conv_record())
        per_group = result.per_group_staffing

        assert result.match.rule.id == "conv-k"
        assert per_group["train_conductor"] == 1
        assert per_group["seat_car_attendant"] == 3
        assert per_group["hard_sleeper_attendant"] == 4
        assert per_group["soft_sleeper_attendant"] == 1
        assert per_group["operation_conductor"] == 1
        assert per_group["broadcaster"] == 1
        assert per_group["train_duty_officer"] == 1
        assert per_group["baggage_staff"] == 1
        assert per_group["dining_car_staff"] == 4
        assert per_group["sales_staff"] == 0
        assert per_group["total"] == 17

    def test_group_count_and_no_work_hour_adjustment(self, standard, conv_record):
        result = ConventionalRuleEngine(standard).calculate_train_staffing(conv_record())
        assert result.adjustment_factor == 1.0
        assert result.group_count == 2
        assert result.exact_total == pytest.approx(34)
        assert result.total == 34
        assert result.warnings == ()

    def test_long_haul_dining_staff(self, standard, conv_record):
        result = ConventionalRuleEngine(standard).calculate_train_staffing(conv_record(运行时间=30))
        assert result.match.tier == "normal_fallback"
        assert result.per_group_staffing["dining_car_staff"] == 5
        assert result.per_group_staffing["total"] == 18

    def test_sales_staff_only_without_dining_car(self, standard, conv_record):
        result = ConventionalRuleEngine(standard).calculate_train_staffing(conv_record(编组详情="硬座5"))
        per_group = result.per_group_staffing

        assert per_group["sales_staff"] == 1
        assert per_group["dining_car_staff"] == 0
        assert per_group["baggage_staff"] == 0
        assert per_group["hard_sleeper_attendant"] == 0
        assert per_group["total"] == 8

    def test_attendants_require_cars(self, standard):
        engine = ConventionalRuleEngine(standard)
        rule = standard.conventional_rules[0]
        staff = engine.per_group_staffing(rule, CarCounts(seat=1), 13)
        assert staff["seat_car_attendant"] == 1
        assert staff["soft_sleeper_attendant"] == 0
        assert staff["hard_sleeper_attendant"] == 0

    def test_rule_level_baggage_count_overrides_crew(self, make_standard, conventional_staffing, conv_record):
        standard = conventional_standard(
            make_standard, conventional_staffing(), runningTimeRange="12to24", baggageStaffWhenHasBaggage=2,
        )
        result = ConventionalRuleEngine(standard).calculate_train_staffing(conv_record())
        assert result.per_group_staffing["baggage_staff"] == 2

    def test_disabled_baggage_and_dining(self, make_standard, conventional_staffing, conv_record):
        crew = conventional_staffing(
            baggageStaffConfig={"enabled": False, "staffPerTrain": 1},
            diningCarStaff={"enabled": False},
        )
        standard = conventional_standard(make_standard, crew)
        per_group = ConventionalRuleEngine(standard).calculate_train_staffing(conv_record()).per_group_staffing
        assert per_group["baggage_staff"] == 0
        assert per_group["dining_car_staff"] == 0
        # 有餐车时仍不配售货员
        assert per_group["sales_staff"] == 0

    def test_no_car_composition_warns(self, standard):
        result = ConventionalRuleEngine(standard).calculate_train_staffing({"车次": "K7", "运行时间": 13})
        assert result.is_matched
        assert result.warnings == ("未识别到车厢编组, 仅按固定岗位计算",)
        assert result.per_group_staffing["total"] == 5

    def test_unmatched_has_zero_per_group(self, make_standard, conv_record):
        standard = make_standard(conventionalRules=[])
        result = ConventionalRuleEngine(standard).calculate_train_staffing(conv_record())
        assert not result.is_matched
        assert result.per_group_staffing["total"] == 0
        assert result.total == 0

    def test_fractional_groups_display_sums_to_total(self, standard, conv_record):
        result = ConventionalRuleEngine(standard).calculate_train_staffing(conv_record(组数=1.5))
        staffing = dict(result.staffing)
        total = staffing.pop("total")
        assert result.exact_total == pytest.approx(25.5)
        assert total == 26
        assert sum(staffing.values()) == total

    def test_half_group_display_has_no_negative_role(self, make_standard, conventional_staffing, conv_record):
        crew = conventional_staffing(
            trainAttendants={"seatCar": {"ratio": "1人2车", "minStaff": 1}},
            additionalStaff={"broadcaster": 1},
            baggageStaffConfig={"enabled": False},
            diningCarStaff={"enabled": False},
            salesStaff={"enabled": False},
        )
        standard = conventional_standard(make_standard, crew)
        result = ConventionalRuleEngine(standard).calculate_train_staffing(conv_record(编组详情="硬座1", 组数=0.5))
        staffing = dict(result.staffing)
        total = staffing.pop("total")

        assert result.exact_total == pytest.approx(2.0)
        assert total == 2
        assert sum(staffing.values()) == total
        assert min(staffing.values()) >= 0
        assert staffing["seat_car_attendant"] == 0
        assert staffing["train_conductor"] == 0
        assert staffing["operation_conductor"] == 1
        assert staffing["broadcaster"] == 1


class TestConventionalUnit:

    def test_unit_totals_with_reserve(self, standard, conv_record):
        result = ConventionalRuleEngine(standard).calculate_unit_staffing([conv_record()], "北京客运段")
        summary = result.summary

        assert summary.base_total_staff == 34
        assert summary.exact_total_staff == pytest.approx(36.72)
        assert summary.total_staff == 37
        assert summary.coverage_rate == 100

    def test_subtotals_and_per_group_breakdown(self, standard, conv_record):
        records = [conv_record(1), conv_record(2, 编组详情="硬座5", 组数=1)]
        summary = ConventionalRuleEngine(standard).calculate_unit_staffing(records).summary

        # 3×2 + 4×2 + 1×2 + 3×1
        assert summary.staffing_breakdown["train_attendants_total"] == 19
        assert summary.staffing_breakdown["additional_staff_total"] == 6
        assert summary.per_group_breakdown["total_groups"] == 3
        assert summary.per_group_breakdown["train_attendants_total"] == 11
        assert summary.per_group_breakdown["sales_staff"] == 1

    def test_international_train_without_rule_is_unmatched(self, standard, conv_record):
        records = [conv_record(1), conv_record(2, 类别="国际联运", 运行时间=30)]
        result = ConventionalRuleEngine(standard).calculate_unit_staffing(records)

        assert result.summary.matched_trains == 1
        assert result.summary.unmatched_trains == 1
        assert result.summary.coverage_rate == 50
        assert "国际联运" in result.unmatched_trains[0].reason
