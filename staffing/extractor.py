# -*- coding: utf-8 -*-
"""
列车数据字段提取
================
导入的列车数据是开放的 {字段名: 值} 映射，各局表格的列名并不统一。
FieldAccessor 为每个逻辑属性维护一组候选列名，按顺序取第一个非空值；
其余函数在此基础上做类型转换。提取失败时一律返回中性默认值 (0 / None /
'unknown')，是否算作匹配失败由下游决定。
"""
import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from staffing.config import DEFAULT_PARAMS
from staffing.models import TrainRecord
from staffing.utils import clean_text, is_blank, parse_clock, to_number

logger = logging.getLogger(__name__)


DEFAULT_ALIASES: Dict[str, Tuple[str, ...]] = {
    "formation": (
        "编组", "formation", "编组详情", "Formation", "车型", "编组类型",
        "列车编组", "编组信息", "车型编组", "编组配置",
    ),
    "formation_detail": ("编组详情", "formationDetail"),
    "running_time": ("单程运行时间", "单程工时", "运行时间", "runningTime", "工时"),
    "start_time": ("始发时间", "startTime", "开车时间"),
    "end_time": ("终到时间", "endTime", "到达时间"),
    "train_number": ("车次", "trainNumber", "列车号", "车次号"),
    "sequence": ("序号", "sequence", "编号", "id", "trainSequence", "trainId", "index"),
    "group_count": ("组数", "groupCount", "配备组数", "每组配备人数", "配备", "组", "班组数"),
    "category": ("类别", "编组类型"),
    "business_class": (
        "商务座", "商务座数", "商务座车厢", "商务车厢数", "businessClass",
        "商务车", "商务座车", "一等座商务座", "BC", "business",
    ),
    "business_class_count": (
        "商务座数", "商务座车厢", "商务车厢数", "商务座车厢数",
        "businessClassCount", "businessClass", "BC数量",
    ),
}

# 独立的车厢类型列, 存在时优先于编组详情文本
CAR_COLUMNS = ("硬座", "软座", "硬卧", "软卧", "餐车", "行李车", "宿营车")

# 常见带商务座的车型/编组关键字
BUSINESS_CLASS_HINTS = ("crh380", "crh2", "长编组", "16编组")


class FieldAccessor:
    """逻辑属性 -> 候选列名 的查找表。"""

    def __init__(self, aliases: Optional[Dict[str, Tuple[str, ...]]] = None):
        self.aliases = dict(DEFAULT_ALIASES)
        if aliases:
            self.aliases.update(aliases)

    def values(self, record: TrainRecord, attribute: str) -> Iterator:
        """Yield every non-blank candidate value, in alias order."""
        for name in self.aliases.get(attribute, ()):
            value = record.get(name)
            if not is_blank(value):
                yield value

    def first(self, record: TrainRecord, attribute: str):
        return next(self.values(record, attribute), None)


FIELDS = FieldAccessor()


@dataclass(frozen=True)
class CarCounts:
    seat: int = 0
    hard_sleeper: int = 0
    soft_sleeper: int = 0
    dining: int = 0
    baggage: int = 0

    @property
    def total(self):
        return self.seat + self.hard_sleeper + self.soft_sleeper + self.dining + self.baggage


# ---------------------------------------------------------------------------
# Scalar attributes
# ---------------------------------------------------------------------------

def extract_formation(record: TrainRecord, fields: FieldAccessor = FIELDS) -> Optional[str]:
    """高铁编组字符串, 如 '8编组'。"""
    for value in fields.values(record, "formation"):
        text = clean_text(value)
        if text:
            return text
    return None


def extract_train_number(record: TrainRecord, fields: FieldAccessor = FIELDS) -> str:
    text = clean_text(fields.first(record, "train_number"))
    return text or "Unknown"


def extract_sequence(record: TrainRecord, fields: FieldAccessor = FIELDS) -> str:
    """序号: 同一序号的多行属于同一趟交路。没有序号时退回到车次。"""
    text = clean_text(fields.first(record, "sequence"))
    if text:
        return text
    text = clean_text(fields.first(record, "train_number"))
    return text or "unknown"


def extract_group_count(record: TrainRecord, fields: FieldAccessor = FIELDS) -> float:
    for value in fields.values(record, "group_count"):
        if isinstance(value, str):
            match = re.search(r"(\d+(?:\.\d+)?)组", value)
            if match and float(match.group(1)) > 0:
                return float(match.group(1))
        number = to_number(value)
        if number is not None and number > 0:
            return number
    return 1.0  # 默认1组


def _clock_minutes(value):
    clock = parse_clock(value) if isinstance(value, str) else None
    if clock is None:
        return None
    hours, minutes = clock
    return hours * 60 + minutes


def extract_running_time(record: TrainRecord, fields: FieldAccessor = FIELDS) -> float:
    """运行时间(小时)。支持 '4:28'、数字, 或由始发/终到时间推算。"""
    for value in fields.values(record, "running_time"):
        clock = parse_clock(value)
        if clock is not None:
            return clock[0] + clock[1] / 60
        number = to_number(value)
        if number is not None:
            return number

    start = _clock_minutes(fields.first(record, "start_time"))
    end = _clock_minutes(fields.first(record, "end_time"))
    if start is not None and end is not None:
        delta = end - start
        if delta < 0:
            delta += 24 * 60  # 跨天
        return delta / 60
    return 0.0


def time_bucket(running_time: float) -> str:
    if running_time < 4:
        return "under4"
    if running_time < 12:
        return "4to12"
    if running_time < 24:
        return "12to24"
    return "over24"


def _category(record, fields):
    return (clean_text(fields.first(record, "category")) or "").lower()


def is_international(record: TrainRecord, fields: FieldAccessor = FIELDS) -> bool:
    return "国际" in _category(record, fields)


def extract_train_type(record: TrainRecord, params=DEFAULT_PARAMS,
                       fields: FieldAccessor = FIELDS) -> Optional[str]:
    """普速列车类型: 国际联运 / Z直达特快 / K快车 / T特快列车, 无法判断时为 None。"""
    category = _category(record, fields)
    if "国际" in category:
        return params.international_type
    if "z" in category:
        return params.through_train_category
    if "k" in category:
        return "K快车"
    if "t" in category:
        return "T特快列车"

    train_number = clean_text(fields.first(record, "train_number")) or ""
    upper = train_number.upper()
    if upper.startswith("Z"):
        return params.through_train_category
    if upper.startswith("K"):
        return "K快车"
    if upper.startswith("T"):
        return "T特快列车"

    # 普速列车但类型不明确时按K快车处理, 以便被正常列车规则兜底
    if train_number and not re.match(r"^[GDC]\d+", upper) \
            and "高速" not in category and "动车" not in category:
        logger.debug("无法精确识别普速列车类型, 默认为K快车: %s", train_number)
        return "K快车"
    return None


# ---------------------------------------------------------------------------
# Car counts
# ---------------------------------------------------------------------------

def _column_count(record, name):
    number = to_number(record.get(name))
    return int(number) if number and number > 0 else 0


def has_car_columns(record: TrainRecord) -> bool:
    return any(_column_count(record, name) > 0 for name in CAR_COLUMNS)


def _sum_tokens(pattern, text):
    return sum(int(n) for n in re.findall(pattern, text))


def parse_formation_detail(text: Optional[str]) -> CarCounts:
    """'硬座8 硬卧2 餐车1' -> CarCounts(seat=8, hard_sleeper=2, dining=1)"""
    if not text:
        return CarCounts()
    return CarCounts(
        seat=_sum_tokens(r"座车?(\d+)", text),
        hard_sleeper=_sum_tokens(r"硬卧(\d+)", text) + _sum_tokens(r"宿营车(\d+)", text),
        soft_sleeper=_sum_tokens(r"软卧(\d+)", text),
        dining=_sum_tokens(r"餐车(\d+)", text),
        baggage=_sum_tokens(r"行李车?(\d+)", text),
    )


def extract_formation_detail(record: TrainRecord, fields: FieldAccessor = FIELDS) -> str:
    """普速编组详情文本, 有独立车厢列时由各列拼出。"""
    if has_car_columns(record):
        parts = []
        for name in CAR_COLUMNS:
            count = _column_count(record, name)
            if count > 0:
                parts.append(f"{name}{count}")
        return "".join(parts)
    return clean_text(fields.first(record, "formation_detail")) or ""


def extract_car_counts(record: TrainRecord, fields: FieldAccessor = FIELDS) -> CarCounts:
    if has_car_columns(record):
        return CarCounts(
            seat=_column_count(record, "硬座") + _column_count(record, "软座"),
            hard_sleeper=_column_count(record, "硬卧") + _column_count(record, "宿营车"),
            soft_sleeper=_column_count(record, "软卧"),
            dining=_column_count(record, "餐车"),
            baggage=_column_count(record, "行李车"),
        )
    return parse_formation_detail(clean_text(fields.first(record, "formation_detail")))


# ---------------------------------------------------------------------------
# Business class (high-speed)
# ---------------------------------------------------------------------------

def _formation_suggests_business_class(record, fields):
    formation = extract_formation(record, fields)
    if not formation:
        return False
    lowered = formation.lower()
    return any(hint in lowered for hint in BUSINESS_CLASS_HINTS)


def has_business_class(record: TrainRecord, fields: FieldAccessor = FIELDS) -> bool:
    for value in fields.values(record, "business_class"):
        if isinstance(value, bool):
            return value
        number = to_number(value)
        if number is not None:
            return number > 0
        lowered = str(value).strip().lower()
        if "商务" in lowered or "business" in lowered:
            return "无" not in lowered and "0" not in lowered
    return _formation_suggests_business_class(record, fields)


def extract_business_class_count(record: TrainRecord, fields: FieldAccessor = FIELDS) -> float:
    for value in fields.values(record, "business_class_count"):
        if isinstance(value, bool):
            continue
        number = to_number(value)
        if number is not None:
            return max(0.0, number)
    # 有商务座但没有明确数量时按1节计
    return 1.0 if has_business_class(record, fields) else 0.0
