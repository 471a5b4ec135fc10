# -*- coding: utf-8 -*-
import asyncio
import logging

from fastapi import APIRouter, HTTPException

from api.dependencies import registry
from api.routers.calculate import unit_data
from api.schemas import (
    CompareRequest,
    CompareResponse,
    StandardTotals,
    UnmatchedAnalysisRequest,
    UnmatchedAnalysisResponse,
)
from staffing.comparison import analyze_train_differences, calculate_standards, generate_difference_analysis
from staffing.high_speed import HighSpeedRuleEngine

router = APIRouter()


def _standards(standard_ids):
    standards = []
    for standard_id in standard_ids:
        try:
            standards.append(registry.get(standard_id))
        except KeyError:
            raise HTTPException(status_code=404, detail=f"找不到定员标准: {standard_id}")
    return standards


def run_comparison(standards, req: CompareRequest) -> CompareResponse:
    results = calculate_standards(standards, unit_data(req.units), req.unit_names)
    return CompareResponse(
        results={
            standard_id: StandardTotals(
                standard_name=calc.standard_name,
                high_speed=calc.high_speed.summary.total_staff,
                conventional=calc.conventional.summary.total_staff,
                other_production=calc.other_production.total_staff,
                total_staff=calc.total_staff,
                coverage_rate=round(calc.coverage_rate, 2),
                unmatched_trains=calc.unmatched_trains,
            )
            for standard_id, calc in results.items()
        },
        analysis=generate_difference_analysis(results, standards),
        train_differences=analyze_train_differences(results, standards),
    )


@router.post(
    "/compare",
    response_model=CompareResponse,
    summary="多标准对比",
    description="以同一份列车数据分别按多个定员标准计算 (所选客运段合并), "
    "返回各标准总定员、差异分析与逐车次差异。",
)
async def compare(req: CompareRequest):
    standards = _standards(req.standard_ids)
    try:
        return await asyncio.to_thread(run_comparison, standards, req)
    except Exception as e:
        logging.error(f"Comparison failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="多标准对比计算出错")


@router.post(
    "/unmatched-analysis",
    response_model=UnmatchedAnalysisResponse,
    summary="未匹配高铁交路分析",
    description="统计未匹配到高铁定员规则的交路 (按编组、时间类别), 用于补充规则。",
)
async def unmatched_analysis(req: UnmatchedAnalysisRequest):
    standard = _standards([req.standard_id])[0]
    engine = HighSpeedRuleEngine(standard)
    result = await asyncio.to_thread(engine.get_unmatched_analysis, req.records)
    return UnmatchedAnalysisResponse(standard_id=standard.id, **result)
