from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from conftest import make_snapshot
from crowdmap.models import PopulationSnapshot
from crowdmap.services.snapshot_store import SnapshotStore

UTC = timezone.utc
T0 = datetime(2026, 10, 19, 3, 0, tzinfo=UTC)


def _count(store: SnapshotStore) -> int:
    with store.session_factory() as db:
        return int(db.scalar(select(func.count()).select_from(PopulationSnapshot)))


def test_latest_generation_empty(store: SnapshotStore) -> None:
    assert store.latest_generation() == []


def test_save_generation_stamps_one_timestamp(store: SnapshotStore) -> None:
    saved = store.save_generation([make_snapshot("서울역"), make_snapshot("강남역")], T0)

    assert saved == 2
    latest = store.latest_generation()
    assert {s.collected_at for s in latest} == {T0}


def test_save_generation_drops_nameless(store: SnapshotStore) -> None:
    saved = store.save_generation([make_snapshot("서울역"), make_snapshot("  ")], T0)
    assert saved == 1
    assert _count(store) == 1


def test_save_generation_empty_is_noop(store: SnapshotStore) -> None:
    assert store.save_generation([], T0) == 0
    assert _count(store) == 0


def test_non_utc_collected_at_normalised(store: SnapshotStore) -> None:
    kst = timezone(timedelta(hours=9))
    store.save_generation([make_snapshot("서울역")], T0.astimezone(kst))

    assert store.latest_generation()[0].collected_at == T0


def test_latest_generation_only_newest_sorted_by_name(store: SnapshotStore) -> None:
    store.save_generation([make_snapshot("서울역", "여유"), make_snapshot("강남역", "여유")], T0)
    store.save_generation(
        [make_snapshot("홍대 관광특구", "붐빔"), make_snapshot("강남역", "붐빔"), make_snapshot("서울역", "보통")],
        T0 + timedelta(minutes=5),
    )

    latest = store.latest_generation()

    assert [s.area_name for s in latest] == sorted(["홍대 관광특구", "강남역", "서울역"])
    assert {s.collected_at for s in latest} == {T0 + timedelta(minutes=5)}
    assert {s.congestion_level for s in latest} == {"붐빔", "보통"}


def test_latest_for_crosses_generations(store: SnapshotStore) -> None:
    store.save_generation([make_snapshot("서울역", "여유"), make_snapshot("강남역", "보통")], T0)
    store.save_generation([make_snapshot("강남역", "붐빔")], T0 + timedelta(minutes=5))

    seoul = store.latest_for("서울역")
    gangnam = store.latest_for("강남역")

    assert seoul is not None and seoul.collected_at == T0
    assert gangnam is not None and gangnam.congestion_level == "붐빔"
    assert store.latest_for("없는장소") is None


def test_history_window_order_and_place_filter(store: SnapshotStore) -> None:
    now = T0 + timedelta(hours=30)
    for hours_ago in (26, 20, 10, 1):
        ts = now - timedelta(hours=hours_ago)
        store.save_generation([make_snapshot("서울역"), make_snapshot("강남역")], ts)

    rows = store.history("서울역", timedelta(hours=24), now=now)

    assert [r.collected_at for r in rows] == [now - timedelta(hours=h) for h in (20, 10, 1)]
    assert {r.area_name for r in rows} == {"서울역"}


def test_history_boundary_inclusive(store: SnapshotStore) -> None:
    now = T0 + timedelta(hours=24)
    store.save_generation([make_snapshot("서울역")], T0)

    assert len(store.history("서울역", timedelta(hours=24), now=now)) == 1


def test_purge_expired(session_factory) -> None:
    store = SnapshotStore(session_factory, retention=timedelta(days=7))
    now = T0 + timedelta(days=10)
    store.save_generation([make_snapshot("서울역")], now - timedelta(days=8))
    store.save_generation([make_snapshot("서울역")], now - timedelta(days=6))

    deleted = store.purge_expired(now=now)

    assert deleted == 1
    rows = store.history("서울역", timedelta(days=30), now=now)
    assert [r.collected_at for r in rows] == [now - timedelta(days=6)]


def test_purge_expired_removes_from_every_read(session_factory) -> None:
    store = SnapshotStore(session_factory, retention=timedelta(days=7))
    now = T0 + timedelta(days=10)
    store.save_generation([make_snapshot("서울역")], now - timedelta(days=8))

    store.purge_expired(now=now)

    assert store.latest_generation() == []
    assert store.latest_for("서울역") is None
    assert store.history("서울역", timedelta(days=30), now=now) == []


def test_failed_save_rolls_back(store: SnapshotStore, monkeypatch: pytest.MonkeyPatch) -> None:
    store.save_generation([make_snapshot("서울역")], T0)

    from sqlalchemy.orm import Session

    def broken_commit(self) -> None:
        raise RuntimeError("disk full")

    monkeypatch.setattr(Session, "commit", broken_commit)
    with pytest.raises(RuntimeError, match="disk full"):
        store.save_generation([make_snapshot("강남역")], T0 + timedelta(minutes=5))
    monkeypatch.undo()

    latest = store.latest_generation()
    assert [s.area_name for s in latest] == ["서울역"]
    assert latest[0].collected_at == T0
