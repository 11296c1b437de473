# crowdmap/catalog.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Sequence


class PlaceCatalog:
    """
    수집 대상 장소 목록 (배포 시점에 고정)
    - 순서를 유지한다 (배치 분할 순서 = 파일 순서)
    """

    def __init__(self, places: Iterable[str]) -> None:
        seen: set[str] = set()
        ordered: list[str] = []
        for p in places:
            name = str(p or "").strip()
            if not name or name in seen:
                continue
            seen.add(name)
            ordered.append(name)
        self._places: tuple[str, ...] = tuple(ordered)
        self._index = frozenset(ordered)

    @property
    def places(self) -> Sequence[str]:
        return self._places

    def __len__(self) -> int:
        return len(self._places)

    def __iter__(self):
        return iter(self._places)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def is_known_place(self, name: str) -> bool:
        return (name or "").strip() in self._index

    def sample(self, n: int = 10) -> list[str]:
        return list(self._places[: int(n)])


def load_places(path: Path | str) -> PlaceCatalog:
    p = Path(path)
    if not p.exists():
        raise RuntimeError(f"Places catalog not found: {p}")

    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise RuntimeError(f"Places catalog must be a JSON array: {p}")
    return PlaceCatalog(data)
