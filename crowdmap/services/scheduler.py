# crowdmap/services/scheduler.py
from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from crowdmap.services.collector import BatchCollector
from crowdmap.services.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class CollectionScheduler:
    """
    수집 주기 관리
    - 시작 즉시 1회, 이후 interval_s마다 고정 간격으로 tick (실행 시간과 무관하게 타이머는 그대로)
    - 이전 수집이 아직 RUNNING이면 그 tick은 건너뛴다 (동시에 한 사이클만)
    - 사이클 안의 실패는 여기서 로그만 남기고 끝낸다 (API 서빙 경로와 분리)
    """

    def __init__(
        self,
        collector: BatchCollector,
        store: SnapshotStore,
        *,
        interval_s: float = 300,
        on_generation: Optional[Callable[[], None]] = None,
        clock: Callable[[], datetime] = _now_utc,
    ) -> None:
        self.collector = collector
        self.store = store
        self.interval_s = float(interval_s)
        self.on_generation = on_generation
        self.clock = clock

        self.state = SchedulerState.IDLE
        self.skipped_ticks = 0
        self._current: Optional[asyncio.Task] = None

    def _enter(self) -> bool:
        if self.state is SchedulerState.RUNNING:
            self.skipped_ticks += 1
            logger.warning("previous collection cycle still running, skipping tick (skipped=%d)", self.skipped_ticks)
            return False
        self.state = SchedulerState.RUNNING
        return True

    async def _cycle(self) -> int:
        started = time.monotonic()
        try:
            snapshots = await self.collector.collect_all()
            if not snapshots:
                logger.warning("collection returned no data, previous generation stays latest")
                return 0

            collected_at = self.clock()
            saved = await asyncio.to_thread(self.store.save_generation, snapshots, collected_at)

            if self.on_generation is not None:
                self.on_generation()
            logger.info("collection cycle done: saved=%d elapsed=%.1fs", saved, time.monotonic() - started)
            return saved
        except Exception:
            logger.exception("collection cycle failed")
            return 0
        finally:
            self.state = SchedulerState.IDLE

    async def run_cycle(self) -> Optional[int]:
        """Run one cycle inline. Returns None when a cycle is already running."""
        if not self._enter():
            return None
        return await self._cycle()

    def tick(self) -> Optional[asyncio.Task]:
        if not self._enter():
            return None
        self._current = asyncio.create_task(self._cycle())
        return self._current

    async def run_forever(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        logger.info("collection scheduler started: interval=%ss", self.interval_s)
        try:
            while True:
                self.tick()
                next_at += self.interval_s
                await asyncio.sleep(max(0.0, next_at - loop.time()))
        finally:
            if self._current is not None and not self._current.done():
                self._current.cancel()
            logger.info("collection scheduler stopped")


class RetentionSweeper:
    """보관 기간이 지난 스냅샷을 주기적으로 삭제 (읽기/쓰기와 독립)"""

    def __init__(self, store: SnapshotStore, *, interval_s: float = 3600) -> None:
        self.store = store
        self.interval_s = float(interval_s)

    async def sweep(self) -> int:
        try:
            return await asyncio.to_thread(self.store.purge_expired)
        except Exception:
            logger.exception("retention sweep failed")
            return 0

    async def run_forever(self) -> None:
        while True:
            await self.sweep()
            await asyncio.sleep(self.interval_s)
