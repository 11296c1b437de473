from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Snapshot:
    area_name: str
    area_code: str
    congestion_level: str
    congestion_message: Optional[str] = None
    population_min: Optional[int] = None
    population_max: Optional[int] = None
    ppltn_time: Optional[str] = None  # 서울시 제공 시각 (문자열 그대로)
    collected_at: Optional[datetime] = None  # 저장 시점에 스토어가 부여
    raw: Optional[Dict[str, Any]] = None
