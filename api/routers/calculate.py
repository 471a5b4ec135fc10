# -*- coding: utf-8 -*-
import asyncio
import logging
from typing import Dict

from fastapi import APIRouter, HTTPException

from api.cache import calculation_cache, payload_digest
from api.dependencies import registry
from api.schemas import (
    AppliedRuleItem,
    CalculateRequest,
    CalculateResponse,
    FamilyResult,
    FamilySummary,
    OtherProductionResult,
    TrainRow,
    UnitRecords,
    UnitResult,
    UnmatchedItem,
)
from staffing import extractor
from staffing.calculator import StaffingCalculator, UnitCalculation
from staffing.models import (
    CONVENTIONAL,
    HIGH_SPEED,
    OtherProductionUnitResult,
    StaffingStandard,
    StandardConfigError,
    UnitStaffingResult,
    standard_from_dict,
)

router = APIRouter()


def resolve_standard(standard_id, inline) -> StaffingStandard:
    if inline is not None:
        try:
            return standard_from_dict(inline)
        except StandardConfigError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if not standard_id:
        raise HTTPException(status_code=400, detail="必须提供 standard_id 或 standard")
    try:
        return registry.get(standard_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"找不到定员标准: {standard_id}")


def unit_data(units: Dict[str, UnitRecords]):
    return {
        name: {HIGH_SPEED: records.high_speed, CONVENTIONAL: records.conventional}
        for name, records in units.items()
    }


def family_result(result: UnitStaffingResult) -> FamilyResult:
    summary = result.summary
    trains = []
    for train in result.train_results:
        data = train.train_data
        trains.append(TrainRow(
            sequence=extractor.extract_sequence(data),
            train_number=extractor.extract_train_number(data),
            formation=extractor.extract_formation(data) or extractor.extract_formation_detail(data) or None,
            matched=train.is_matched,
            rule=train.rule_name,
            tier=train.match.tier if train.match else None,
            group_count=round(train.group_count, 4),
            adjustment_factor=round(train.adjustment_factor, 4),
            exact_total=round(train.exact_total, 4),
            total=train.total,
            staffing={k: v for k, v in train.staffing.items() if k != "total"},
            warnings=list(train.warnings),
        ))
    return FamilyResult(
        summary=FamilySummary(
            total_trains=summary.total_trains,
            matched_trains=summary.matched_trains,
            unmatched_trains=summary.unmatched_trains,
            exact_base_total_staff=round(summary.exact_base_total_staff, 4),
            base_total_staff=summary.base_total_staff,
            reserve_rate=summary.reserve_rate,
            exact_total_staff=round(summary.exact_total_staff, 4),
            total_staff=summary.total_staff,
            coverage_rate=round(summary.coverage_rate, 2),
            staffing_breakdown=summary.staffing_breakdown,
            per_group_breakdown=summary.per_group_breakdown,
        ),
        trains=trains,
        unmatched=[
            UnmatchedItem(
                train_number=extractor.extract_train_number(u.train_data),
                reason=u.reason,
                suggested_action=u.suggested_action,
            )
            for u in result.unmatched_trains
        ],
    )


def other_production_result(result: OtherProductionUnitResult) -> OtherProductionResult:
    return OtherProductionResult(
        high_speed_total_staff=result.high_speed_total_staff,
        conventional_total_staff=result.conventional_total_staff,
        main_production_total=result.main_production_total,
        applied_rules=[
            AppliedRuleItem(
                rule_id=a.rule.id,
                name=a.rule.name,
                config_type=a.rule.config_type,
                calculated_staff=a.calculated_staff,
                calculation=a.calculation,
                breakdown=a.breakdown,
            )
            for a in result.applied_rules
        ],
        base_total_staff=result.base_total_staff,
        reserve_rate=result.reserve_rate,
        total_staff=result.total_staff,
    )


def unit_result(calc: UnitCalculation) -> UnitResult:
    return UnitResult(
        unit_name=calc.unit_name,
        high_speed=family_result(calc.high_speed),
        conventional=family_result(calc.conventional),
        other_production=other_production_result(calc.other_production),
        total_staff=calc.total_staff,
        coverage_rate=round(calc.coverage_rate, 2),
    )


def run_calculation(standard: StaffingStandard, req: CalculateRequest) -> CalculateResponse:
    calculator = StaffingCalculator(standard)
    data = unit_data(req.units)
    per_unit = calculator.calculate_units(data)
    combined = calculator.calculate_combined(data) if req.combined else None
    return CalculateResponse(
        standard_id=standard.id,
        standard_name=standard.name,
        units=[unit_result(calc) for calc in per_unit.values()],
        combined=unit_result(combined) if combined else None,
        total_staff=sum(calc.total_staff for calc in per_unit.values()),
    )


@router.post(
    "/calculate",
    response_model=CalculateResponse,
    summary="定员计算",
    description="按定员标准计算各客运段的高铁、普速及其余生产定员。"
    "使用已加载标准时结果按 (标准, 请求数据) 缓存 5 分钟。",
)
async def calculate(req: CalculateRequest):
    standard = resolve_standard(req.standard_id, req.standard)

    digest = None
    if req.standard is None:
        digest = payload_digest(req.model_dump(by_alias=True, include={"units", "combined"}))
        cached = calculation_cache.get(standard.id, digest)
        if cached is not None:
            return cached

    try:
        response = await asyncio.to_thread(run_calculation, standard, req)
    except Exception as e:
        logging.error(f"Calculation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="定员计算出错")

    if digest is not None:
        calculation_cache.set(standard.id, digest, response)
    return response
