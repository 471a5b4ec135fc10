# -*- coding: utf-8 -*-
"""主要生产 (高铁/普速) 规则引擎的公共部分。"""
import logging
from typing import Dict, Iterable, Optional, Sequence, Tuple

from staffing import extractor
from staffing.aggregation import group_by_sequence, main_reserve_rate, representatives, summarize_unit
from staffing.config import DEFAULT_PARAMS, StaffingParams
from staffing.models import (
    MatchResult,
    StaffingStandard,
    TrainRecord,
    TrainStaffingResult,
    UnitStaffingResult,
    UnmatchedTrain,
)

logger = logging.getLogger(__name__)

NO_RULE_WARNING = "未找到匹配的定员规则"


class MainProductionEngine:
    """
    Shared unit-level flow:
        records -> 按序号分组 -> 代表行 -> 逐车计算 -> 汇总(预备率/覆盖率)

    Subclasses provide `family`, `roles`, `matcher` and `calculate_train_staffing`.
    """

    family = ""
    roles: Tuple[str, ...] = ()
    subtotals: Dict[str, Sequence[str]] = {}
    with_per_group = False

    def __init__(self, standard: StaffingStandard, params: StaffingParams = DEFAULT_PARAMS,
                 fields: extractor.FieldAccessor = extractor.FIELDS):
        self.standard = standard
        self.params = params
        self.fields = fields
        self.matcher = self._build_matcher()

    def _build_matcher(self):
        raise NotImplementedError

    def match_rule(self, record: TrainRecord) -> Optional[MatchResult]:
        return self.matcher.match(record)

    def calculate_train_staffing(self, record: TrainRecord) -> TrainStaffingResult:
        raise NotImplementedError

    def _unmatched_result(self, record: TrainRecord, group_count: float) -> TrainStaffingResult:
        reason, suggestion = self.matcher.explain_miss(record)
        zeros = {role: 0 for role in self.roles}
        return TrainStaffingResult(
            train_data=record,
            family=self.family,
            match=None,
            staffing={**zeros, "total": 0},
            exact_staffing={**{role: 0.0 for role in self.roles}, "total": 0.0},
            group_count=group_count,
            original_group_count=group_count,
            adjustment_factor=1.0,
            is_matched=False,
            warnings=(NO_RULE_WARNING,),
            per_group_staffing={**zeros, "total": 0} if self.with_per_group else None,
            reason=reason,
            suggested_action=suggestion,
        )

    def sequence_key(self, record: TrainRecord) -> str:
        return extractor.extract_sequence(record, self.fields)

    def calculate_unit_staffing(self, records: Iterable[TrainRecord],
                                unit_name: str = "北京客运段") -> UnitStaffingResult:
        groups = group_by_sequence(records, self.sequence_key)
        train_results = [self.calculate_train_staffing(r) for r in representatives(groups)]

        unmatched = []
        for result in train_results:
            if result.is_matched:
                continue
            unmatched.append(UnmatchedTrain(result.train_data, result.reason, result.suggested_action))
            logger.warning("未匹配: 车次 %s, %s",
                           extractor.extract_train_number(result.train_data, self.fields), result.reason)

        return summarize_unit(
            unit_name=unit_name,
            family=self.family,
            standard=self.standard,
            train_results=train_results,
            total_groups=len(groups),
            reserve_rate=main_reserve_rate(self.standard, unit_name, self.params),
            unmatched=unmatched,
            subtotals=self.subtotals,
            with_per_group=self.with_per_group,
        )
