# crowdmap/services/collector.py
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Sequence

from crowdmap.clients.seoul_citydata import FetchResult, FetchSuccess, SeoulCityDataClient
from crowdmap.schemas import Snapshot

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def chunked(items: Sequence[str], size: int) -> List[Sequence[str]]:
    if size <= 0:
        raise ValueError(f"batch size must be positive, got {size}")
    return [items[i : i + size] for i in range(0, len(items), size)]


def keep_successes(results: Iterable[FetchResult]) -> List[Snapshot]:
    # 실패한 장소는 이번 generation에서 제외 (로그는 fetcher에서 이미 남김)
    return [r.snapshot for r in results if isinstance(r, FetchSuccess)]


class BatchCollector:
    """
    전체 장소를 batch_size개씩 묶어 병렬 호출
    - 그룹 내부: asyncio.gather로 동시 요청 후 전부 끝날 때까지 대기
    - 그룹 사이: batch_delay_s 만큼 쉬어서 서울시 API 부하를 줄인다 (마지막 그룹 뒤에는 쉬지 않음)
    - 일부/전부 실패해도 중단하지 않고 성공한 것만 돌려준다
    """

    def __init__(
        self,
        client: SeoulCityDataClient,
        places: Sequence[str],
        *,
        batch_size: int = 10,
        batch_delay_s: float = 0.5,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.client = client
        self.places = list(places)
        self.batch_size = int(batch_size)
        self.batch_delay_s = float(batch_delay_s)
        self._sleep = sleep

    async def collect_all(self) -> List[Snapshot]:
        total = len(self.places)
        groups = chunked(self.places, self.batch_size)
        logger.info("collect start: places=%d groups=%d", total, len(groups))

        results: List[Snapshot] = []
        done = 0
        for i, group in enumerate(groups):
            fetched = await asyncio.gather(*(self.client.fetch_population(p) for p in group))
            results.extend(keep_successes(fetched))
            done += len(group)
            logger.debug("collect progress: %d/%d", done, total)

            if i < len(groups) - 1:
                await self._sleep(self.batch_delay_s)

        logger.info("collect done: %d/%d succeeded", len(results), total)
        return results
