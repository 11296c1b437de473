# crowdmap/clients/seoul_citydata.py

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import quote

import httpx

from crowdmap.schemas import Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchSuccess:
    place: str
    snapshot: Snapshot


@dataclass(frozen=True)
class FetchFailure:
    place: str
    cause: str


FetchResult = Union[FetchSuccess, FetchFailure]


def _parse_population(v: Any) -> Optional[int]:
    # "12000" -> 12000, ""/None/"abc"/음수 -> None
    try:
        n = int(str(v).strip())
    except (TypeError, ValueError):
        return None
    return n if n >= 0 else None


def _population_range(record: Dict[str, Any]) -> Tuple[Optional[int], Optional[int]]:
    lo = _parse_population(record.get("AREA_PPLTN_MIN"))
    hi = _parse_population(record.get("AREA_PPLTN_MAX"))
    if lo is not None and hi is not None and hi < lo:
        return None, None
    return lo, hi


def _opt_str(v: Any) -> Optional[str]:
    s = ("" if v is None else str(v)).strip()
    return s or None


def record_to_snapshot(place: str, record: Dict[str, Any]) -> Snapshot:
    lo, hi = _population_range(record)
    return Snapshot(
        area_name=str(record.get("AREA_NM") or place).strip(),
        area_code=str(record.get("AREA_CD") or "").strip(),
        congestion_level=str(record.get("AREA_CONGEST_LVL") or "").strip(),
        congestion_message=_opt_str(record.get("AREA_CONGEST_MSG")),
        population_min=lo,
        population_max=hi,
        ppltn_time=_opt_str(record.get("PPLTN_TIME")),
        raw=record,
    )


class SeoulCityDataClient:
    """
    서울시 실시간 도시데이터(인구) API client.
    한 장소 = 한 요청, 실패는 예외 대신 FetchFailure로 돌려준다 (재시도 없음).
    """

    BASE_URL = "http://openapi.seoul.go.kr:8088"
    SERVICE = "citydata_ppltn"
    RECORD_KEY = "SeoulRtd.citydata_ppltn"

    def __init__(
        self,
        api_key: str,
        timeout_s: float = 8.0,
        *,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.timeout_s = float(timeout_s)
        self._http = http

    def url_for(self, place: str) -> str:
        encoded = quote(place, safe="")
        return f"{self.BASE_URL}/{self.api_key}/json/{self.SERVICE}/1/5/{encoded}"

    async def _get(self, url: str) -> httpx.Response:
        if self._http is not None:
            return await self._http.get(url, timeout=self.timeout_s)
        async with httpx.AsyncClient(timeout=self.timeout_s, trust_env=False) as client:
            return await client.get(url)

    async def fetch_population(self, place: str) -> FetchResult:
        result = await self._fetch(place)
        if isinstance(result, FetchFailure):
            logger.warning("fetch failed: place=%s cause=%s", result.place, result.cause)
        return result

    async def _fetch(self, place: str) -> FetchResult:
        place = (place or "").strip()
        if not place:
            return FetchFailure(place=place, cause="empty place name")
        if not self.api_key:
            return FetchFailure(place=place, cause="SEOUL_API_KEY is not configured")

        try:
            resp = await self._get(self.url_for(place))
        except httpx.TimeoutException:
            return FetchFailure(place=place, cause=f"timeout after {self.timeout_s}s")
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            return FetchFailure(place=place, cause=f"request error: {e.__class__.__name__}: {e}")

        if resp.status_code != 200:
            return FetchFailure(place=place, cause=f"http status {resp.status_code}")

        try:
            data = resp.json()
        except ValueError:
            return FetchFailure(place=place, cause="response is not JSON")

        records = data.get(self.RECORD_KEY) if isinstance(data, dict) else None
        if not isinstance(records, list) or not records or not isinstance(records[0], dict):
            # 잘못된 장소명/키 오류 시 RESULT만 내려온다
            code = ""
            if isinstance(data, dict):
                result = data.get("RESULT")
                if isinstance(result, dict):
                    code = str(result.get("RESULT.CODE") or result.get("CODE") or "")
            cause = "missing record array" + (f" (result code {code})" if code else "")
            return FetchFailure(place=place, cause=cause)

        record = records[0]
        result = record.get("RESULT")
        if isinstance(result, dict):
            code = result.get("RESULT.CODE") or result.get("CODE")
            if code and str(code) != "INFO-000":
                return FetchFailure(place=place, cause=f"result code {code}")

        return FetchSuccess(place=place, snapshot=record_to_snapshot(place, record))
