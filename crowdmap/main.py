from dotenv import load_dotenv
load_dotenv()

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crowdmap.config import Settings
from crowdmap.container import Services, build_services
from crowdmap.routes.health import router as health_router
from crowdmap.routes.population import router as population_router

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    settings = settings or (services.settings if services else Settings.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        서비스 객체를 한 번 만들고, 수집 스케줄러와 보관기간 정리 작업을 백그라운드로 띄운다.
        """
        svc = services or build_services(settings)
        app.state.services = svc

        tasks: list[asyncio.Task] = []
        if settings.enable_scheduler:
            tasks.append(asyncio.create_task(svc.scheduler.run_forever()))
            tasks.append(asyncio.create_task(svc.sweeper.run_forever()))
            logger.info(
                "collector enabled: places=%d interval=%ss batch=%d",
                len(svc.catalog),
                settings.collect_interval_s,
                settings.batch_size,
            )
        try:
            yield
        finally:
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await svc.aclose()

    app = FastAPI(title="Seoul CrowdMap API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(population_router)
    return app


configure_logging(Settings.from_env().log_level)
app = create_app()


if __name__ == "__main__":
    import os

    import uvicorn

    host = os.getenv("APP_HOST", "0.0.0.0")
    port = int(os.getenv("APP_PORT", os.getenv("PORT", "8000")))
    uvicorn.run(app, host=host, port=port)
