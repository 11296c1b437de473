from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from crowdmap.db import Base

# 운영(PostgreSQL)에서는 JSONB, 테스트(sqlite)에서는 JSON
RawPayload = JSON().with_variant(JSONB(), "postgresql")


class PopulationSnapshot(Base):
    """
    장소별 실시간 인구 스냅샷.
    같은 collected_at을 공유하는 행들이 한 번의 수집(generation)이다.
    """
    __tablename__ = "population_snapshots"

    __table_args__ = (
        Index("ix_population_snapshots_area_name_collected_at", "area_name", "collected_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer(), "sqlite"), primary_key=True, autoincrement=True)

    area_name: Mapped[str] = mapped_column(String(100), nullable=False)
    area_code: Mapped[str] = mapped_column(String(20), nullable=False, default="")

    congestion_level: Mapped[str] = mapped_column(String(20), nullable=False, default="")  # 여유/보통/약간 붐빔/붐빔
    congestion_message: Mapped[str | None] = mapped_column(String(500), nullable=True)

    population_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    population_max: Mapped[int | None] = mapped_column(Integer, nullable=True)

    ppltn_time: Mapped[str | None] = mapped_column(String(30), nullable=True)  # "2026-01-13 14:25" (정렬에 쓰지 않음)

    collected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    raw: Mapped[dict | None] = mapped_column(RawPayload, nullable=True)
