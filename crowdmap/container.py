from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import httpx
from fastapi import Request
from sqlalchemy.orm import Session, sessionmaker

from crowdmap.catalog import PlaceCatalog, load_places
from crowdmap.clients.seoul_citydata import SeoulCityDataClient
from crowdmap.config import Settings
from crowdmap.db import make_engine, make_session_factory
from crowdmap.services.collector import BatchCollector
from crowdmap.services.population import PopulationService
from crowdmap.services.result_cache import ResultCache
from crowdmap.services.scheduler import CollectionScheduler, RetentionSweeper
from crowdmap.services.snapshot_store import SnapshotStore


@dataclass
class Services:
    settings: Settings
    catalog: PlaceCatalog
    http: httpx.AsyncClient
    client: SeoulCityDataClient
    collector: BatchCollector
    store: SnapshotStore
    cache: ResultCache
    population: PopulationService
    scheduler: CollectionScheduler
    sweeper: RetentionSweeper

    async def aclose(self) -> None:
        await self.http.aclose()


def build_services(
    settings: Settings,
    *,
    session_factory: Optional[sessionmaker[Session]] = None,
    http: Optional[httpx.AsyncClient] = None,
    catalog: Optional[PlaceCatalog] = None,
) -> Services:
    """프로세스 시작 시 한 번만 호출 (캐시/스토어/스케줄러는 모두 여기서 생성)"""
    if session_factory is None:
        session_factory = make_session_factory(make_engine(settings.require_database_url()))
    if http is None:
        http = httpx.AsyncClient(timeout=settings.upstream_timeout_s, trust_env=False)
    if catalog is None:
        catalog = load_places(settings.places_path)

    client = SeoulCityDataClient(settings.seoul_api_key, settings.upstream_timeout_s, http=http)
    collector = BatchCollector(
        client,
        catalog.places,
        batch_size=settings.batch_size,
        batch_delay_s=settings.batch_delay_s,
    )
    store = SnapshotStore(session_factory, retention=timedelta(days=settings.retention_days))
    cache = ResultCache(settings.cache_ttl_s)
    population = PopulationService(store, cache, history_hours=settings.history_hours)
    scheduler = CollectionScheduler(
        collector,
        store,
        interval_s=settings.collect_interval_s,
        on_generation=population.invalidate,
    )
    sweeper = RetentionSweeper(store, interval_s=settings.retention_sweep_interval_s)

    return Services(
        settings=settings,
        catalog=catalog,
        http=http,
        client=client,
        collector=collector,
        store=store,
        cache=cache,
        population=population,
        scheduler=scheduler,
        sweeper=sweeper,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
