"""結果快取 — 依 session id 存放 GeneratedCode，有 TTL 與總大小上限。"""

import json
import math
import time
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Callable, Dict, Optional, Tuple

MB = 1024 * 1024


@dataclass(frozen=True)
class CacheSettings:
    max_size: int = 50 * MB
    ttl_seconds: float = 10 * 60
    evict_fraction: float = 0.25


def estimate_size(value: Any) -> int:
    """序列化成 JSON 的位元組數（dataclass 先轉 dict，其餘型別用 str）."""
    data = asdict(value) if is_dataclass(value) and not isinstance(value, type) else value
    return len(json.dumps(data, default=str, ensure_ascii=False).encode("utf-8"))


class ResultCache:
    """超過大小上限時先淘汰最舊的 25%，過期項目在讀取時移除."""

    def __init__(self, settings: Optional[CacheSettings] = None, clock: Callable[[], float] = time.monotonic):
        self.settings = settings or CacheSettings()
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float, int]] = {}
        self._size = 0

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def set(self, key: str, value: Any) -> None:
        size = estimate_size(value)
        if key in self._entries:
            self._size -= self._entries.pop(key)[2]
        if self._size + size > self.settings.max_size:
            self._evict()
        self._entries[key] = (value, self._clock(), size)
        self._size += size

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at, size = entry
        if self._clock() - stored_at > self.settings.ttl_seconds:
            del self._entries[key]
            self._size -= size
            return None
        return value

    def clear(self) -> None:
        self._entries.clear()
        self._size = 0

    def stats(self) -> dict:
        return {"size": self._size, "entries": len(self._entries), "max_size": self.settings.max_size}

    def _evict(self) -> None:
        oldest = sorted(self._entries.items(), key=lambda item: item[1][1])
        for key, (_, _, size) in oldest[:math.ceil(len(oldest) * self.settings.evict_fraction)]:
            del self._entries[key]
            self._size -= size
