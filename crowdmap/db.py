from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    pass


def make_engine(url: str) -> Engine:
    url = (url or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is missing in environment variables.")

    if url.startswith("sqlite"):
        # 테스트/로컬용: 스레드 간 같은 커넥션 공유 (in-memory DB 유지)
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )

    return create_engine(
        url,
        pool_pre_ping=True,
        future=True,
    )


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


def init_schema(engine: Engine) -> None:
    # alembic을 쓰지 않는 환경(테스트, 로컬 sqlite)에서만 사용
    from crowdmap import models  # noqa: F401  (모델 로드)

    Base.metadata.create_all(engine)
