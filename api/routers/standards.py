# -*- coding: utf-8 -*-
import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException

from api.cache import invalidate_calculation_cache
from api.dependencies import registry
from api.schemas import StandardSummary
from staffing.models import StandardConfigError

router = APIRouter()


def verify_api_key(x_api_key: Optional[str] = Header(None)) -> None:
    """API Key 校验 (仅在设置了 STAFFING_API_KEY 时)"""
    api_key = os.getenv("STAFFING_API_KEY")
    if api_key:
        if not x_api_key or x_api_key != api_key:
            raise HTTPException(status_code=403, detail="无效的 API Key")


def summarize(standard) -> StandardSummary:
    return StandardSummary(
        id=standard.id,
        name=standard.name,
        bureau=standard.bureau,
        standard_work_hours=standard.standard_work_hours,
        high_speed_rules=len(standard.high_speed_rules),
        conventional_rules=len(standard.conventional_rules),
        other_production_rules=len(standard.other_production_rules),
        description=standard.description,
    )


@router.get(
    "/standards",
    response_model=List[StandardSummary],
    summary="定员标准列表",
    description="返回已加载的全部定员标准及其规则数量。",
)
async def list_standards():
    return [summarize(s) for s in registry.list()]


@router.get(
    "/standards/{standard_id}",
    summary="定员标准详情",
    description="返回定员标准的原始 JSON 配置 (camelCase 键名)。",
)
async def get_standard(standard_id: str):
    try:
        standard = registry.get(standard_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"找不到定员标准: {standard_id}")
    return standard.source


@router.put(
    "/standards/{standard_id}",
    response_model=StandardSummary,
    summary="替换定员标准",
    description="以 JSON 配置整体替换 (或新增) 一个定员标准, 同时清除该标准的计算缓存。",
)
async def put_standard(
    standard_id: str,
    payload: Dict[str, Any] = Body(...),
    _: None = Depends(verify_api_key),
):
    try:
        standard = registry.put(standard_id, payload)
    except StandardConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logging.exception("Standard update failed")
        raise HTTPException(status_code=500, detail="定员标准更新失败")

    invalidate_calculation_cache(standard_id)
    return summarize(standard)
