# -*- coding: utf-8 -*-
"""
计算结果缓存
- /api/calculate 用 LRU 缓存 (TTL 5分钟, 最多 100 项)
- 键: (standard_id, 请求数据摘要)
- 标准被 PUT 替换时按标准失效
- Thread-safe: RLock 保护并发访问
"""
import hashlib
import json
import threading
import time
from collections import OrderedDict
from typing import Any, Dict, Mapping, Optional, Tuple


def payload_digest(payload: Mapping[str, Any]) -> str:
    """Stable digest of a JSON-like request payload."""
    text = json.dumps(payload, sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class CalculationCache:
    """
    LRU cache (thread-safe)
    - key: (standard_id, digest)
    - TTL: 300 seconds by default
    """

    def __init__(self, max_size: int = 100, ttl_seconds: int = 300):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.cache: OrderedDict[Tuple[str, str], Dict[str, Any]] = OrderedDict()  # {key: {value, timestamp}}
        self._lock = threading.RLock()

    def _cleanup_expired(self):
        """drop expired entries (caller must hold lock)"""
        now = time.time()
        expired_keys = [
            key for key, data in self.cache.items()
            if now - data["timestamp"] > self.ttl_seconds
        ]
        for key in expired_keys:
            del self.cache[key]

    def get(self, standard_id: str, digest: str) -> Optional[Any]:
        with self._lock:
            self._cleanup_expired()
            key = (standard_id, digest)
            if key in self.cache:
                self.cache.move_to_end(key)
                return self.cache[key]["value"]
            return None

    def set(self, standard_id: str, digest: str, value: Any):
        with self._lock:
            self._cleanup_expired()
            key = (standard_id, digest)
            if key in self.cache:
                self.cache.move_to_end(key)
            elif len(self.cache) >= self.max_size:
                self.cache.popitem(last=False)
            self.cache[key] = {"value": value, "timestamp": time.time()}

    def invalidate(self, standard_id: Optional[str] = None):
        """Drop every entry, or only those computed with one standard."""
        with self._lock:
            if standard_id is None:
                self.cache.clear()
                return
            for key in [k for k in self.cache if k[0] == standard_id]:
                del self.cache[key]


# 全局缓存实例
calculation_cache = CalculationCache(max_size=100, ttl_seconds=300)


def invalidate_calculation_cache(standard_id: Optional[str] = None):
    calculation_cache.invalidate(standard_id)
