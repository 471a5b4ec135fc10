from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


Record = Dict[str, Any]


# --- Requests ---

class UnitRecords(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    high_speed: List[Record] = Field(default_factory=list, alias="highSpeed")
    conventional: List[Record] = Field(default_factory=list)


class CalculateRequest(BaseModel):
    standard_id: Optional[str] = Field(None, max_length=100)
    standard: Optional[Dict[str, Any]] = None  # 内联标准, 优先于 standard_id
    units: Dict[str, UnitRecords] = Field(min_length=1)  # {客运段名称: 列车数据}
    combined: bool = False  # 额外计算所选客运段合并后的结果


class CompareRequest(BaseModel):
    standard_ids: List[str] = Field(min_length=2)
    units: Dict[str, UnitRecords] = Field(min_length=1)
    unit_names: Optional[List[str]] = None


class UnmatchedAnalysisRequest(BaseModel):
    standard_id: str = Field(max_length=100)
    records: List[Record]


# --- Standards ---

class StandardSummary(BaseModel):
    id: str
    name: str
    bureau: str
    standard_work_hours: Optional[float] = None
    high_speed_rules: int
    conventional_rules: int
    other_production_rules: int
    description: str = ""


# --- Calculation results ---

class TrainRow(BaseModel):
    sequence: str
    train_number: str
    formation: Optional[str] = None
    matched: bool
    rule: Optional[str] = None
    tier: Optional[str] = None
    group_count: float
    adjustment_factor: float = 1.0
    exact_total: float
    total: int
    staffing: Dict[str, int]
    warnings: List[str] = []


class UnmatchedItem(BaseModel):
    train_number: str
    reason: str
    suggested_action: str


class FamilySummary(BaseModel):
    total_trains: int
    matched_trains: int
    unmatched_trains: int
    exact_base_total_staff: float
    base_total_staff: int
    reserve_rate: float  # 小数, 0.08 == 8%
    exact_total_staff: float
    total_staff: int
    coverage_rate: float  # 百分比
    staffing_breakdown: Dict[str, int]
    per_group_breakdown: Optional[Dict[str, float]] = None


class FamilyResult(BaseModel):
    summary: FamilySummary
    trains: List[TrainRow]
    unmatched: List[UnmatchedItem]


class AppliedRuleItem(BaseModel):
    rule_id: str
    name: str
    config_type: str
    calculated_staff: float
    calculation: str
    breakdown: Dict[str, float] = {}


class OtherProductionResult(BaseModel):
    high_speed_total_staff: int
    conventional_total_staff: int
    main_production_total: int
    applied_rules: List[AppliedRuleItem]
    base_total_staff: float
    reserve_rate: float
    total_staff: int


class UnitResult(BaseModel):
    unit_name: str
    high_speed: FamilyResult
    conventional: FamilyResult
    other_production: OtherProductionResult
    total_staff: int
    coverage_rate: float


class CalculateResponse(BaseModel):
    standard_id: str
    standard_name: str
    units: List[UnitResult]
    combined: Optional[UnitResult] = None
    total_staff: int  # 各客运段最终定员之和


# --- Comparison ---

class StandardTotals(BaseModel):
    standard_name: str
    high_speed: int
    conventional: int
    other_production: int
    total_staff: int
    coverage_rate: float
    unmatched_trains: int


class CompareResponse(BaseModel):
    results: Dict[str, StandardTotals]
    analysis: Dict[str, Any]
    train_differences: Dict[str, Any]


class UnmatchedAnalysisResponse(BaseModel):
    standard_id: str
    total_trains: int
    unmatched_count: int
    by_formation: Dict[str, int]
    by_time_category: Dict[str, int]
    samples: List[Dict[str, Any]]
