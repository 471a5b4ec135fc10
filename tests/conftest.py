"""
pytest 配置文件
"""
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# 项目根目录加入 sys.path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from staffing.models import standard_from_dict  # noqa: E402


@pytest.fixture(scope="session")
def test_client():
    """FastAPI 测试客户端 (加载 data/standards 下的示例标准)"""
    from api.app import app
    with TestClient(app) as client:
        yield client


def _conventional_staffing(**overrides):
    staffing = {
        "trainConductor": 1,
        "trainAttendants": {
            "seatCar": {"ratio": "1人2车", "minStaff": 1},
            "hardSleeper": {"ratio": "1人1车", "minStaff": 1},
            "softSleeper": {"ratio": "1人2车", "minStaff": 1},
        },
        "trainOperator": 1,
        "translator": 0,
        "additionalStaff": {"broadcaster": 1, "trainDutyOfficer": 1},
        "baggageStaffConfig": {"enabled": True, "staffPerTrain": 1},
        "diningCarStaff": {"enabled": True, "rules": {"under24h": 4, "over24h": 5}},
        "salesStaff": {"enabled": True, "staffPerGroup": 1},
    }
    staffing.update(overrides)
    return staffing


@pytest.fixture
def conventional_staffing():
    """普速规则人员配置 (可覆盖部分键)"""
    return _conventional_staffing


@pytest.fixture
def standard_data():
    """北京局风格的完整定员标准 JSON"""
    return {
        "id": "test-standard",
        "name": "测试标准",
        "bureau": "beijing",
        "standardWorkHours": 166.6,
        "reserveRates": {
            "mainProduction": {"beijing": 8, "shijiazhuang": 8, "tianjin": 10},
            "otherProduction": 5,
        },
        "highSpeedRules": [
            {
                "id": "hs-8-short",
                "name": "8编组短途",
                "conditions": {"formation": ["8编组"], "runningTime": {"min": 0, "max": 12}},
                "staffing": {"trainConductor": 1, "trainAttendant": 2, "businessClassAttendant": 1},
            },
            {
                "id": "hs-8-any",
                "name": "8编组不限时间",
                "conditions": {"formation": ["8编组"]},
                "staffing": {"trainConductor": 1, "trainAttendant": 4, "businessClassAttendant": 0},
            },
        ],
        "conventionalRules": [
            {
                "id": "conv-k",
                "name": "K快车12-24小时",
                "conditions": {"trainTypes": ["K快车"], "runningTimeRange": "12to24"},
                "staffing": _conventional_staffing(),
            },
            {
                "id": "conv-normal",
                "name": "正常列车",
                "conditions": {"trainTypes": ["正常列车"]},
                "staffing": _conventional_staffing(),
            },
        ],
        "otherProductionRules": [
            {"id": "op-fixed", "name": "派班室", "configType": "fixed", "config": {"fixedCount": 4}},
            {"id": "op-pct", "name": "管理人员", "configType": "percentage", "config": {"percentage": 10}},
        ],
    }


@pytest.fixture
def make_standard(standard_data):
    """standard_data 的浅覆盖 -> StaffingStandard"""
    def _make(**overrides):
        return standard_from_dict({**standard_data, **overrides})
    return _make


@pytest.fixture
def standard(make_standard):
    return make_standard()


@pytest.fixture
def hs_record():
    """8编组 4.5小时 高铁交路"""
    def _record(sequence=1, **fields):
        record = {"序号": sequence, "车次": f"G{sequence}", "编组": "8编组", "运行时间": "4:30", "组数": 1}
        record.update(fields)
        return record
    return _record


@pytest.fixture
def conv_record():
    """K快车 13小时 带餐车/行李车的普速交路"""
    def _record(sequence=1, **fields):
        record = {
            "序号": sequence,
            "车次": f"K{100 + sequence}",
            "运行时间": 13,
            "编组详情": "硬座5 硬卧4 软卧1 餐车1 行李车1",
            "组数": 2,
        }
        record.update(fields)
        return record
    return _record
