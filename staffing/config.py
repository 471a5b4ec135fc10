# -*- coding: utf-8 -*-
"""
定员计算引擎参数
================
引擎里用到的常量都集中在这里，由各引擎的构造函数注入。
测试中可用 dataclasses.replace() 覆盖。
"""
from dataclasses import dataclass, field
from typing import Dict

# 北京局标准工时，系统基准
REFERENCE_WORK_HOURS = 166.6

TRAIN_UNITS = {
    "beijing": "北京客运段",
    "shijiazhuang": "石家庄客运段",
    "tianjin": "天津客运段",
}


@dataclass(frozen=True)
class StaffingParams:
    reference_work_hours: float = REFERENCE_WORK_HOURS
    default_main_reserve_rate: float = 8.0   # percent
    default_other_reserve_rate: float = 5.0  # percent

    # 普速规则的特殊类型
    through_rule_type: str = "直达列车"
    through_train_category: str = "Z直达特快"
    normal_rule_type: str = "正常列车"
    international_type: str = "国际联运"

    # 餐车人员按运行时间分档的分界 (小时)
    dining_long_haul_hours: float = 24.0

    train_units: Dict[str, str] = field(default_factory=lambda: dict(TRAIN_UNITS))

    def unit_key(self, unit_name):
        """'北京客运段' or 'beijing' -> 'beijing'. None for unknown units."""
        if unit_name in self.train_units:
            return unit_name
        for key, name in self.train_units.items():
            if name == unit_name:
                return key
        return None


DEFAULT_PARAMS = StaffingParams()
