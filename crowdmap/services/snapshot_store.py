from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, sessionmaker

from crowdmap.models import PopulationSnapshot
from crowdmap.schemas import Snapshot

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(days=7)
DEFAULT_HISTORY_WINDOW = timedelta(hours=24)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(ts: datetime) -> datetime:
    # sqlite는 tz 정보 없이 돌려주므로 UTC로 간주
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _to_snapshot(row: PopulationSnapshot) -> Snapshot:
    return Snapshot(
        area_name=row.area_name,
        area_code=row.area_code or "",
        congestion_level=row.congestion_level or "",
        congestion_message=row.congestion_message,
        population_min=row.population_min,
        population_max=row.population_max,
        ppltn_time=row.ppltn_time,
        collected_at=_as_utc(row.collected_at),
    )


class SnapshotStore:
    """
    population_snapshots 저장소
    - save_generation: 한 번의 수집 결과를 같은 collected_at으로 한 트랜잭션에 저장
      (commit 전에는 다른 세션에서 보이지 않으므로 "최신"이 중간 상태로 읽히지 않는다)
    - latest_generation / latest_for / history: 읽기 전용, 락 없음
    - purge_expired: 보관 기간(기본 7일)이 지난 행 삭제
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        retention: timedelta = DEFAULT_RETENTION,
    ) -> None:
        self.session_factory = session_factory
        self.retention = retention

    def save_generation(self, snapshots: Sequence[Snapshot], collected_at: Optional[datetime] = None) -> int:
        ts = _as_utc(collected_at or _now_utc())
        rows = [
            PopulationSnapshot(
                area_name=s.area_name,
                area_code=s.area_code or "",
                congestion_level=s.congestion_level or "",
                congestion_message=s.congestion_message,
                population_min=s.population_min,
                population_max=s.population_max,
                ppltn_time=s.ppltn_time,
                collected_at=ts,
                raw=s.raw,
            )
            for s in snapshots
            if (s.area_name or "").strip()
        ]
        if len(rows) != len(snapshots):
            logger.warning("save_generation: dropped %d snapshots without area name", len(snapshots) - len(rows))
        if not rows:
            return 0

        with self.session_factory() as db:
            try:
                db.add_all(rows)
                db.commit()
            except Exception:
                db.rollback()
                logger.exception("save_generation failed: rows=%d collected_at=%s", len(rows), ts.isoformat())
                raise

        logger.info("save_generation: rows=%d collected_at=%s", len(rows), ts.isoformat())
        return len(rows)

    def latest_generation(self) -> List[Snapshot]:
        with self.session_factory() as db:
            latest_ts = db.scalar(select(func.max(PopulationSnapshot.collected_at)))
            if latest_ts is None:
                return []

            stmt = (
                select(PopulationSnapshot)
                .where(PopulationSnapshot.collected_at == latest_ts)
                .order_by(PopulationSnapshot.area_name.asc())
            )
            return [_to_snapshot(r) for r in db.scalars(stmt).all()]

    def latest_for(self, place: str) -> Optional[Snapshot]:
        with self.session_factory() as db:
            stmt = (
                select(PopulationSnapshot)
                .where(PopulationSnapshot.area_name == place)
                .order_by(PopulationSnapshot.collected_at.desc())
                .limit(1)
            )
            row = db.scalar(stmt)
            return _to_snapshot(row) if row is not None else None

    def history(
        self,
        place: str,
        since: timedelta = DEFAULT_HISTORY_WINDOW,
        *,
        now: Optional[datetime] = None,
    ) -> List[Snapshot]:
        cutoff = _as_utc(now or _now_utc()) - since
        with self.session_factory() as db:
            stmt = (
                select(PopulationSnapshot)
                .where(PopulationSnapshot.area_name == place)
                .where(PopulationSnapshot.collected_at >= cutoff)
                .order_by(PopulationSnapshot.collected_at.asc())
            )
            return [_to_snapshot(r) for r in db.scalars(stmt).all()]

    def purge_expired(self, *, now: Optional[datetime] = None) -> int:
        cutoff = _as_utc(now or _now_utc()) - self.retention
        with self.session_factory() as db:
            try:
                result = db.execute(
                    delete(PopulationSnapshot).where(PopulationSnapshot.collected_at < cutoff)
                )
                db.commit()
            except Exception:
                db.rollback()
                raise

        deleted = int(result.rowcount or 0)
        if deleted:
            logger.info("purge_expired: deleted=%d cutoff=%s", deleted, cutoff.isoformat())
        return deleted
