from __future__ import annotations

import argparse
import sys
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

load_dotenv(dotenv_path=ROOT / ".env", override=True)

from crowdmap.config import Settings  # noqa: E402
from crowdmap.db import make_engine, make_session_factory  # noqa: E402
from crowdmap.services.snapshot_store import SnapshotStore  # noqa: E402


def main() -> None:
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="Delete population snapshots older than the retention horizon")
    parser.add_argument("--days", type=int, default=settings.retention_days)
    args = parser.parse_args()

    engine = make_engine(settings.require_database_url())
    store = SnapshotStore(make_session_factory(engine), retention=timedelta(days=int(args.days)))

    deleted = store.purge_expired()
    print(f"[done] deleted={deleted} retention_days={args.days}")


if __name__ == "__main__":
    main()
