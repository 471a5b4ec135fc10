# -*- coding: utf-8 -*-
"""
StaffingCalculator
==================
按依赖顺序计算一个客运段的全部定员:
    高铁 + 普速 (互不依赖) -> 其余生产 (以前两者的总定员为基数)

unit_data 的结构与导入结果一致:
    {"北京客运段": {"highSpeed": [record, ...], "conventional": [record, ...]}, ...}
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from staffing import extractor
from staffing.config import DEFAULT_PARAMS, StaffingParams
from staffing.conventional import ConventionalRuleEngine
from staffing.high_speed import HighSpeedRuleEngine
from staffing.models import (
    CONVENTIONAL,
    HIGH_SPEED,
    OtherProductionUnitResult,
    StaffingStandard,
    TrainRecord,
    UnitStaffingResult,
)
from staffing.other_production import OtherProductionRuleEngine

logger = logging.getLogger(__name__)

COMBINED_UNIT_NAME = "多客运段对比"

UnitData = Mapping[str, Mapping[str, Sequence[TrainRecord]]]


@dataclass(frozen=True)
class UnitCalculation:
    unit_name: str
    standard_id: str
    standard_name: str
    high_speed: UnitStaffingResult
    conventional: UnitStaffingResult
    other_production: OtherProductionUnitResult

    @property
    def total_staff(self):
        return (self.high_speed.summary.total_staff
                + self.conventional.summary.total_staff
                + self.other_production.total_staff)

    @property
    def total_trains(self):
        return self.high_speed.summary.total_trains + self.conventional.summary.total_trains

    @property
    def unmatched_trains(self):
        return self.high_speed.summary.unmatched_trains + self.conventional.summary.unmatched_trains

    @property
    def coverage_rate(self):
        """percent of distinct workings matched, 100 for an empty data set"""
        if self.total_trains == 0:
            return 100.0
        return (self.total_trains - self.unmatched_trains) / self.total_trains * 100


class StaffingCalculator:

    def __init__(self, standard: StaffingStandard, params: StaffingParams = DEFAULT_PARAMS,
                 fields: extractor.FieldAccessor = extractor.FIELDS):
        self.standard = standard
        self.params = params
        self.high_speed = HighSpeedRuleEngine(standard, params, fields)
        self.conventional = ConventionalRuleEngine(standard, params, fields)
        self.other_production = OtherProductionRuleEngine(standard, params)

    def calculate_unit(self, unit_name: str,
                       high_speed_records: Iterable[TrainRecord] = (),
                       conventional_records: Iterable[TrainRecord] = ()) -> UnitCalculation:
        hs = self.high_speed.calculate_unit_staffing(high_speed_records, unit_name)
        conv = self.conventional.calculate_unit_staffing(conventional_records, unit_name)
        other = self.other_production.calculate_unit_staffing(hs, conv, unit_name)
        return UnitCalculation(
            unit_name=unit_name,
            standard_id=self.standard.id,
            standard_name=self.standard.name,
            high_speed=hs,
            conventional=conv,
            other_production=other,
        )

    def calculate_units(self, unit_data: UnitData,
                        unit_names: Optional[Sequence[str]] = None) -> Dict[str, UnitCalculation]:
        """Each unit separately, with its own reserve rate."""
        results = {}
        for name in unit_names or list(unit_data):
            data = unit_data.get(name)
            if data is None:
                logger.warning("没有客运段 %s 的列车数据, 跳过", name)
                continue
            results[name] = self.calculate_unit(
                name, data.get(HIGH_SPEED) or (), data.get(CONVENTIONAL) or ()
            )
        return results

    def calculate_combined(self, unit_data: UnitData, unit_names: Optional[Sequence[str]] = None,
                           label: str = COMBINED_UNIT_NAME) -> UnitCalculation:
        """All selected units merged into one data set."""
        high_speed: List[TrainRecord] = []
        conventional: List[TrainRecord] = []
        for name in unit_names or list(unit_data):
            data = unit_data.get(name) or {}
            high_speed.extend(data.get(HIGH_SPEED) or ())
            conventional.extend(data.get(CONVENTIONAL) or ())
        return self.calculate_unit(label, high_speed, conventional)
