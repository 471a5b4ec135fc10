# -*- coding: utf-8 -*-
"""规则匹配优先级测试"""
from staffing.matching import ConventionalMatcher, HighSpeedMatcher
from staffing.models import conventional_rule_from_dict, high_speed_rule_from_dict


def hs_rule(rule_id, formations, time=None):
    conditions = {"formation": formations}
    if time is not None:
        conditions["runningTime"] = time
    return high_speed_rule_from_dict({
        "id": rule_id, "name": rule_id, "conditions": conditions,
        "staffing": {"trainConductor": 1, "trainAttendant": 2},
    })


def conv_rule(rule_id, train_types, time_range=None, **conditions):
    conditions["trainTypes"] = train_types
    if time_range:
        conditions["runningTimeRange"] = time_range
    return conventional_rule_from_dict({"id": rule_id, "name": rule_id, "conditions": conditions})


class TestHighSpeedMatcher:

    def test_bounded_rule_beats_unbounded_fallback(self):
        # 不限时间的规则声明在前, 仍不能遮蔽有时间限制的规则
        matcher = HighSpeedMatcher([
            hs_rule("any", ["8编组"]),
            hs_rule("short", ["8编组"], {"min": 0, "max": 12}),
        ])
        result = matcher.match({"编组": "8编组", "运行时间": 5})
        assert result.rule.id == "short"
        assert result.tier == "formation_time"

    def test_unbounded_rule_catches_out_of_range_time(self):
        matcher = HighSpeedMatcher([
            hs_rule("any", ["8编组"]),
            hs_rule("short", ["8编组"], {"min": 0, "max": 12}),
        ])
        result = matcher.match({"编组": "8编组", "运行时间": 15})
        assert result.rule.id == "any"
        assert result.tier == "formation_any_time"
        assert "时间: 不限制" in result.matched_conditions

    def test_formation_is_exact_and_case_insensitive(self):
        matcher = HighSpeedMatcher([hs_rule("crh", ["CRH380A"])])
        assert matcher.match({"编组": " crh380a "}).rule.id == "crh"
        assert matcher.match({"编组": "CRH380AL"}) is None

    def test_declaration_order_breaks_ties(self):
        matcher = HighSpeedMatcher([
            hs_rule("first", ["8编组"], {"max": 12}),
            hs_rule("second", ["8编组"], {"min": 1, "max": 10}),
        ])
        assert matcher.match({"编组": "8编组", "运行时间": 5}).rule.id == "first"

    def test_min_zero_without_max_is_unbounded(self):
        rule = hs_rule("zero", ["8编组"], {"min": 0})
        assert rule.is_time_unbounded
        assert not hs_rule("twelve", ["8编组"], {"min": 12}).is_time_unbounded

    def test_min_bound(self):
        matcher = HighSpeedMatcher([hs_rule("long", ["8编组"], {"min": 12})])
        assert matcher.match({"编组": "8编组", "运行时间": 11}) is None
        assert matcher.match({"编组": "8编组", "运行时间": 12}).rule.id == "long"

    def test_missing_formation_or_rules(self):
        assert HighSpeedMatcher([hs_rule("a", ["8编组"])]).match({"运行时间": 3}) is None
        assert HighSpeedMatcher([]).match({"编组": "8编组"}) is None

    def test_explain_miss(self):
        matcher = HighSpeedMatcher([hs_rule("a", ["8编组"])])
        reason, suggestion = matcher.explain_miss({"运行时间": 3})
        assert "缺少编组信息" in reason

        reason, suggestion = matcher.explain_miss({"编组": "4编组", "运行时间": 13})
        assert "4编组" in reason
        assert "12小时以上" in suggestion


class TestConventionalMatcher:

    def rules(self):
        return [
            conv_rule("k-short", ["K快车"], "4to12"),
            conv_rule("z", ["直达列车"]),
            conv_rule("k-dining", ["K快车"], "12to24", hasRestaurant=True),
            conv_rule("k-long", ["K快车"], "12to24"),
            conv_rule("normal-12", ["正常列车"], "12to24"),
            conv_rule("normal-24", ["正常列车"], "over24"),
        ]

    def test_through_train_rule_wins_first(self):
        result = ConventionalMatcher(self.rules()).match({"车次": "Z1", "运行时间": 13})
        assert result.rule.id == "z"
        assert result.tier == "through_train"

    def test_full_condition_respects_declared_restaurant_flag(self):
        matcher = ConventionalMatcher(self.rules())
        with_dining = matcher.match({"车次": "K101", "运行时间": 13, "编组详情": "硬座8 餐车1"})
        without_dining = matcher.match({"车次": "K101", "运行时间": 13, "编组详情": "硬座8"})
        assert with_dining.rule.id == "k-dining"
        assert with_dining.tier == "full_condition"
        assert without_dining.rule.id == "k-long"
        assert without_dining.tier == "full_condition"

    def test_type_only_tier_relaxes_declared_conditions(self):
        matcher = ConventionalMatcher([conv_rule("k-dining", ["K快车"], "12to24", hasRestaurant=True)])
        result = matcher.match({"车次": "K101", "运行时间": 13, "编组详情": "硬座8"})
        assert result.rule.id == "k-dining"
        assert result.tier == "type_only"

    def test_normal_fallback_prefers_matching_time_range(self):
        result = ConventionalMatcher(self.rules()).match({"车次": "T5", "运行时间": 13})
        assert result.rule.id == "normal-12"
        assert result.tier == "normal_fallback"

    def test_normal_fallback_any_time(self):
        result = ConventionalMatcher(self.rules()).match({"车次": "T5", "运行时间": 2})
        assert result.rule.id == "normal-12"
        assert result.tier == "normal_fallback"

    def test_international_train_skips_normal_fallback(self):
        matcher = ConventionalMatcher(self.rules())
        assert matcher.match({"类别": "国际联运", "车次": "K3", "运行时间": 30}) is None

    def test_explain_miss(self):
        matcher = ConventionalMatcher([conv_rule("k-short", ["K快车"], "4to12")])
        reason, suggestion = matcher.explain_miss({"车次": "K101", "运行时间": 30})
        assert "K快车" in reason
        assert "24小时以上" in suggestion
