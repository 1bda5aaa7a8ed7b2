# brightland/cli/__main__.py
from __future__ import annotations

import argparse
from datetime import datetime

from .. import models  # noqa: F401  (registers tables on Base.metadata)
from ..db import Base, SessionLocal, engine
from ..logging_config import configure_logging
from ..services.request_purge import purge_deleted_requests


def _purge(args: argparse.Namespace) -> dict:
    now = datetime.fromisoformat(args.now) if args.now else None
    db = SessionLocal()
    try:
        return purge_deleted_requests(db, now=now, grace_days=args.grace_days, dry_run=args.dry_run)
    finally:
        db.close()


def _init_db(args: argparse.Namespace) -> dict:
    # local/dev only; real deployments run `alembic upgrade head`
    Base.metadata.create_all(bind=engine)
    return {"ok": True, "tables": sorted(Base.metadata.tables)}


def main(argv: list[str] | None = None) -> None:
    p = argparse.ArgumentParser(prog="python -m brightland.cli")
    sub = p.add_subparsers(dest="cmd", required=True)

    purge = sub.add_parser("purge-deleted", help="permanently remove requests past their grace period")
    purge.add_argument("--dry-run", action="store_true")
    purge.add_argument("--grace-days", type=int, default=None)
    purge.add_argument("--now", default=None, help="ISO timestamp to evaluate the cutoff against")
    purge.set_defaults(func=_purge)

    init_db = sub.add_parser("init-db", help="create tables from the models")
    init_db.set_defaults(func=_init_db)

    args = p.parse_args(argv)
    configure_logging()
    print(args.func(args))


if __name__ == "__main__":
    main()
