from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

# ---------------------------------
# Path + .env (MUST be before crowdmap imports)
# ---------------------------------
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

load_dotenv(dotenv_path=ROOT / ".env", override=True)

# ---------------------------------
# App imports
# ---------------------------------
from crowdmap.catalog import PlaceCatalog, load_places  # noqa: E402
from crowdmap.config import Settings  # noqa: E402
from crowdmap.container import build_services  # noqa: E402
from crowdmap.main import configure_logging  # noqa: E402


async def _run(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    catalog = load_places(settings.places_path)
    if args.limit:
        catalog = PlaceCatalog(catalog.sample(int(args.limit)))

    services = build_services(settings, catalog=catalog)
    try:
        print(f"[collect] places={len(catalog)} batch={settings.batch_size} dry_run={args.dry_run}")

        if args.dry_run:
            snapshots = await services.collector.collect_all()
            for s in snapshots:
                print(
                    f"[dry] place={s.area_name} level={s.congestion_level} "
                    f"ppltn={s.population_min}~{s.population_max} time={s.ppltn_time}"
                )
            print(f"[done] fetched={len(snapshots)}/{len(catalog)}")
            return 0

        saved = await services.scheduler.run_cycle()
        print(f"[done] saved={saved} at={datetime.now(timezone.utc).isoformat()}")
        return 0 if saved else 1
    finally:
        await services.aclose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Collect one generation of population snapshots")
    parser.add_argument("--limit", type=int, default=0, help="Only poll the first N places")
    parser.add_argument("--dry-run", action="store_true", help="Fetch and print without saving")
    args = parser.parse_args()

    raise SystemExit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
