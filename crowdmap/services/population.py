from __future__ import annotations

from datetime import timedelta
from typing import List, Optional, Tuple

from crowdmap.schemas import Snapshot
from crowdmap.services.ranking import Ranking, rank
from crowdmap.services.result_cache import ALL_LATEST_KEY, RANKING_KEY, ResultCache, place_key
from crowdmap.services.snapshot_store import SnapshotStore


class PopulationService:
    """
    읽기 경로: 캐시 -> (miss) 스토어/랭킹 계산 -> 캐시에 기록
    반환값의 bool은 캐시 적중 여부 (응답의 cached 필드)
    """

    def __init__(self, store: SnapshotStore, cache: ResultCache, *, history_hours: int = 24) -> None:
        self.store = store
        self.cache = cache
        self.history_hours = int(history_hours)

    def latest_all(self) -> Tuple[List[Snapshot], bool]:
        hit = self.cache.get(ALL_LATEST_KEY)
        if hit is not None:
            return hit, True

        data = self.store.latest_generation()
        self.cache.set(ALL_LATEST_KEY, data)
        return data, False

    def latest_for(self, place: str) -> Tuple[Optional[Snapshot], bool]:
        key = place_key(place)
        hit = self.cache.get(key)
        if hit is not None:
            return hit, True

        snap = self.store.latest_for(place)
        if snap is not None:
            self.cache.set(key, snap)
        return snap, False

    def ranking(self) -> Tuple[Ranking, bool]:
        hit = self.cache.get(RANKING_KEY)
        if hit is not None:
            return hit, True

        result = rank(self.store.latest_generation())
        self.cache.set(RANKING_KEY, result)
        return result, False

    def history(self, place: str, hours: Optional[int] = None) -> List[Snapshot]:
        window = timedelta(hours=int(hours or self.history_hours))
        return self.store.history(place, window)

    def invalidate(self) -> None:
        # 새 generation 저장 직후 호출 (랭킹은 최신 generation 기준으로 다시 계산)
        self.cache.clear()
