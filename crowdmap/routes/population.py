# crowdmap/routes/population.py
from __future__ import annotations

import asyncio
import html
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from crowdmap.clients.seoul_citydata import FetchSuccess
from crowdmap.container import Services, get_services
from crowdmap.schemas import Snapshot
from crowdmap.services.ranking import RankingEntry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/population", tags=["population"])

MAX_PLACE_NAME_LEN = 50


# -------------------------
# Models
# -------------------------
class SnapshotItem(BaseModel):
    area_name: str
    area_code: str = ""
    congestion_level: str = ""          # 여유/보통/약간 붐빔/붐빔
    congestion_message: Optional[str] = None
    population_min: Optional[int] = None
    population_max: Optional[int] = None
    ppltn_time: Optional[str] = None    # 서울시 제공 시각
    collected_at: Optional[datetime] = None

    @classmethod
    def from_snapshot(cls, s: Snapshot) -> "SnapshotItem":
        return cls(
            area_name=s.area_name,
            area_code=s.area_code,
            congestion_level=s.congestion_level,
            congestion_message=s.congestion_message,
            population_min=s.population_min,
            population_max=s.population_max,
            ppltn_time=s.ppltn_time,
            collected_at=s.collected_at,
        )


class RankingItem(SnapshotItem):
    crowd_score: int

    @classmethod
    def from_entry(cls, e: RankingEntry) -> "RankingItem":
        return cls(**SnapshotItem.from_snapshot(e.snapshot).model_dump(), crowd_score=e.crowd_score)


class LatestResponse(BaseModel):
    success: bool = True
    count: int = 0
    cached: bool = False
    data: List[SnapshotItem] = Field(default_factory=list)
    message: Optional[str] = None


class RealtimeResponse(BaseModel):
    success: bool = True
    count: int = 0
    data: List[SnapshotItem] = Field(default_factory=list)


class PlaceResponse(BaseModel):
    success: bool = True
    cached: bool = False
    source: str = "db"                  # db | realtime
    data: SnapshotItem


class HistoryResponse(BaseModel):
    success: bool = True
    place: str
    hours: int
    count: int = 0
    data: List[SnapshotItem] = Field(default_factory=list)


class RankingResponse(BaseModel):
    success: bool = True
    cached: bool = False
    crowded: List[RankingItem] = Field(default_factory=list)
    quiet: List[RankingItem] = Field(default_factory=list)


# -------------------------
# Utils
# -------------------------
def _validate_place_name(place_name: str, services: Services) -> str:
    name = (place_name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail={"message": "place name is required"})
    if len(name) > MAX_PLACE_NAME_LEN:
        raise HTTPException(status_code=400, detail={"message": "place name is too long"})
    if html.escape(name) != name:
        raise HTTPException(status_code=400, detail={"message": "place name contains invalid characters"})
    if not services.catalog.is_known_place(name):
        raise HTTPException(
            status_code=400,
            detail={"message": f"unknown place: {name}", "valid_places": services.catalog.sample(10)},
        )
    return name


def _read_failed(what: str) -> HTTPException:
    logger.exception("read failed: %s", what)
    return HTTPException(status_code=500, detail={"message": "failed to read population data"})


# -------------------------
# Routes
# -------------------------
@router.get("", response_model=LatestResponse)
def latest_population(services: Services = Depends(get_services)) -> LatestResponse:
    """
    가장 최근 수집(generation)의 전체 장소 데이터 (장소명 오름차순)
    """
    try:
        data, cached = services.population.latest_all()
    except Exception:
        raise _read_failed("latest_all") from None

    items = [SnapshotItem.from_snapshot(s) for s in data]
    return LatestResponse(
        count=len(items),
        cached=cached,
        data=items,
        message=None if items else "no snapshots stored yet",
    )


@router.get("/realtime", response_model=RealtimeResponse)
async def realtime_population(services: Services = Depends(get_services)) -> RealtimeResponse:
    """
    서울시 API 직접 호출 (DB 저장 없음). 전체 장소를 한 번 도는 만큼 느리다.
    """
    data = await services.collector.collect_all()
    items = [SnapshotItem.from_snapshot(s) for s in data]
    return RealtimeResponse(count=len(items), data=items)


@router.get("/ranking/top", response_model=RankingResponse)
def ranking_top(services: Services = Depends(get_services)) -> RankingResponse:
    try:
        result, cached = services.population.ranking()
    except Exception:
        raise _read_failed("ranking") from None

    return RankingResponse(
        cached=cached,
        crowded=[RankingItem.from_entry(e) for e in result.crowded],
        quiet=[RankingItem.from_entry(e) for e in result.quiet],
    )


@router.get("/{place_name}", response_model=PlaceResponse)
async def place_latest(place_name: str, services: Services = Depends(get_services)) -> PlaceResponse:
    """
    특정 장소 최신 스냅샷. DB에 없으면 서울시 API를 한 번 직접 호출한다.
    """
    name = _validate_place_name(place_name, services)

    try:
        snap, cached = await asyncio.to_thread(services.population.latest_for, name)
    except Exception:
        raise _read_failed(f"latest_for {name}") from None

    if snap is not None:
        return PlaceResponse(cached=cached, source="db", data=SnapshotItem.from_snapshot(snap))

    result = await services.client.fetch_population(name)
    if not isinstance(result, FetchSuccess):
        raise HTTPException(status_code=404, detail={"message": f"no data for place: {name}"})
    return PlaceResponse(cached=False, source="realtime", data=SnapshotItem.from_snapshot(result.snapshot))


@router.get("/{place_name}/history", response_model=HistoryResponse)
def place_history(
    place_name: str,
    hours: Optional[int] = Query(None, ge=1, le=24 * 7, description="최근 N시간 (기본 24)"),
    services: Services = Depends(get_services),
) -> HistoryResponse:
    """
    특정 장소의 시간대별 추이 (오래된 것 -> 최신)
    """
    name = _validate_place_name(place_name, services)
    window = int(hours or services.population.history_hours)

    try:
        data = services.population.history(name, window)
    except Exception:
        raise _read_failed(f"history {name}") from None

    items = [SnapshotItem.from_snapshot(s) for s in data]
    return HistoryResponse(place=name, hours=window, count=len(items), data=items)
