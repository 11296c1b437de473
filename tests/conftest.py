from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Iterator, Optional

import httpx
import pytest
from sqlalchemy.orm import Session, sessionmaker

from crowdmap.db import init_schema, make_engine, make_session_factory
from crowdmap.schemas import Snapshot
from crowdmap.services.snapshot_store import SnapshotStore

RECORD_KEY = "SeoulRtd.citydata_ppltn"


@pytest.fixture
def session_factory() -> Iterator[sessionmaker[Session]]:
    engine = make_engine("sqlite+pysqlite:///:memory:")
    init_schema(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory: sessionmaker[Session]) -> SnapshotStore:
    return SnapshotStore(session_factory)


def make_snapshot(
    name: str,
    level: str = "보통",
    *,
    pop_min: Optional[int] = None,
    pop_max: Optional[int] = None,
    collected_at: Optional[datetime] = None,
) -> Snapshot:
    return Snapshot(
        area_name=name,
        area_code=f"POI-{name}",
        congestion_level=level,
        congestion_message=f"{name} {level}",
        population_min=pop_min,
        population_max=pop_max,
        ppltn_time="2026-10-19 12:00",
        collected_at=collected_at,
    )


def make_record(name: str, level: str = "보통", pop_min: Any = "1000", pop_max: Any = "2000") -> Dict[str, Any]:
    return {
        "AREA_NM": name,
        "AREA_CD": f"POI-{name}",
        "AREA_CONGEST_LVL": level,
        "AREA_CONGEST_MSG": f"{name}은 {level}입니다.",
        "AREA_PPLTN_MIN": pop_min,
        "AREA_PPLTN_MAX": pop_max,
        "PPLTN_TIME": "2026-10-19 12:00",
    }


def citydata_transport(records: Dict[str, Dict[str, Any]], *, fail: frozenset = frozenset()) -> httpx.MockTransport:
    """
    URL 마지막 path segment(장소명) 기준으로 응답을 돌려주는 가짜 서울시 API
    - records에 없으면 RESULT만 있는 응답 (실제 API의 "해당 장소 없음"과 같은 모양)
    - fail에 있으면 연결 오류
    """

    def handler(request: httpx.Request) -> httpx.Response:
        place = request.url.path.rsplit("/", 1)[-1]
        if place in fail:
            raise httpx.ConnectError("connection refused", request=request)
        record = records.get(place)
        if record is None:
            body = {"RESULT": {"RESULT.CODE": "ERROR-500", "RESULT.MESSAGE": "no data"}}
        else:
            body = {RECORD_KEY: [record]}
        return httpx.Response(200, content=json.dumps(body, ensure_ascii=False).encode("utf-8"))

    return httpx.MockTransport(handler)
