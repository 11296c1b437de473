# crowdmap/services/ranking.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from crowdmap.schemas import Snapshot

# 붐빔=4 ... 여유=1, 모르는 값도 1
SEVERITY_WEIGHT = {"붐빔": 4, "약간 붐빔": 3, "보통": 2, "여유": 1}
DEFAULT_WEIGHT = 1


@dataclass(frozen=True)
class RankingEntry:
    snapshot: Snapshot
    crowd_score: int


@dataclass(frozen=True)
class Ranking:
    crowded: List[RankingEntry] = field(default_factory=list)
    quiet: List[RankingEntry] = field(default_factory=list)


def severity_weight(level: Optional[str]) -> int:
    return SEVERITY_WEIGHT.get((level or "").strip(), DEFAULT_WEIGHT)


def population_norm(upper: Optional[int], max_population: int) -> int:
    """
    upper / max_population 을 0..99 정수로 정규화.
    정확히 .5인 경우는 내림 (정수 연산이라 부동소수 오차 없음).
    """
    if max_population <= 0:
        return 0
    # 49.5 -> 49 (Math.round라면 50)
    q, r = divmod(int(upper or 0) * 99, int(max_population))
    return q + 1 if 2 * r > max_population else q


def crowd_score(snapshot: Snapshot, max_population: int) -> int:
    return severity_weight(snapshot.congestion_level) * 100 + population_norm(snapshot.population_max, max_population)


def rank(snapshots: Sequence[Snapshot], top_n: int = 3) -> Ranking:
    """
    한 generation(최신 수집분)에 대해 혼잡 TOP N / 한산 TOP N 계산.
    - 점수 = 혼잡도 가중치 * 100 + 인구 정규화(0..99) -> 100..499
    - 같은 점수는 입력 순서 유지 (입력은 장소명 오름차순)
    - quiet는 점수 낮은 것부터
    """
    if not snapshots:
        return Ranking()

    max_population = max(int(s.population_max or 0) for s in snapshots)
    scored = [RankingEntry(snapshot=s, crowd_score=crowd_score(s, max_population)) for s in snapshots]
    scored.sort(key=lambda e: e.crowd_score, reverse=True)

    n = int(top_n)
    crowded = scored[:n]
    quiet = list(reversed(scored[-n:])) if n > 0 else []
    return Ranking(crowded=crowded, quiet=quiet)
