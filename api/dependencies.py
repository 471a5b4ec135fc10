"""
定员标准注册表 (单例).
启动时从 STAFFING_STANDARDS_DIR (默认 data/standards) 读取全部 *.json, 所有请求共享。
PUT 替换标准时整体替换 dict, 不做原地修改。
"""
import json
import logging
import os
import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

# 项目根目录加入 sys.path
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from staffing.models import StaffingStandard, StandardConfigError, standard_from_dict, standards_from_list

logger = logging.getLogger(__name__)

DEFAULT_STANDARDS_DIR = PROJECT_ROOT / "data" / "standards"


class StandardRegistry:
    def __init__(self):
        self.standards: Dict[str, StaffingStandard] = {}
        self.lock = threading.RLock()
        self.loaded = False

    @staticmethod
    def standards_dir() -> Path:
        return Path(os.getenv("STAFFING_STANDARDS_DIR") or DEFAULT_STANDARDS_DIR)

    def load(self, directory: Optional[Path] = None):
        directory = Path(directory) if directory else self.standards_dir()
        loaded: Dict[str, StaffingStandard] = {}
        if not directory.is_dir():
            logger.warning("定员标准目录不存在: %s", directory)
        else:
            for path in sorted(directory.glob("*.json")):
                try:
                    with open(path, encoding="utf-8") as f:
                        data = json.load(f)
                    items = data if isinstance(data, list) else [data]
                    for standard in standards_from_list(items):
                        loaded[standard.id] = standard
                except (OSError, json.JSONDecodeError, StandardConfigError) as e:
                    logger.error("定员标准文件 %s 读取失败: %s", path.name, e)

        with self.lock:
            self.standards = loaded
            self.loaded = True
        logger.info("已加载 %d 个定员标准 (%s)", len(loaded), directory)

    def list(self) -> List[StaffingStandard]:
        with self.lock:
            return list(self.standards.values())

    def get(self, standard_id: str) -> StaffingStandard:
        with self.lock:
            if standard_id not in self.standards:
                raise KeyError(standard_id)
            return self.standards[standard_id]

    def put(self, standard_id: str, data: Mapping[str, Any]) -> StaffingStandard:
        """Replace (or add) a standard from its JSON shape. Raises StandardConfigError."""
        standard = standard_from_dict({**data, "id": standard_id})
        with self.lock:
            standards = dict(self.standards)
            standards[standard.id] = standard
            self.standards = standards
        logger.info("定员标准已更新: %s (%s)", standard.id, standard.name)
        return standard


registry = StandardRegistry()
