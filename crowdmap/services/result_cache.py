from __future__ import annotations

import time
from typing import Any, Callable, Hashable, Optional

from cachetools import TTLCache

ALL_LATEST_KEY = "all_latest"
RANKING_KEY = "ranking"


def place_key(place: str) -> str:
    return f"place_{place}"


class ResultCache:
    """
    읽기 API용 메모리 캐시 (고정 TTL, 접근해도 연장되지 않음)
    - 권한 없는 가속기일 뿐이라 clear()는 언제 불러도 된다
    """

    def __init__(self, ttl_s: int = 300, *, maxsize: int = 1024, timer: Callable[[], float] = time.monotonic) -> None:
        self.ttl_s = int(ttl_s)
        self._cache: TTLCache[Hashable, Any] = TTLCache(maxsize=maxsize, ttl=self.ttl_s, timer=timer)

    def get(self, key: Hashable) -> Optional[Any]:
        return self._cache.get(key)

    def set(self, key: Hashable, value: Any) -> None:
        self._cache[key] = value

    def clear(self) -> None:
        self._cache.clear()
