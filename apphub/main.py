"""Application bootstrap / CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

from loguru import logger

from .config import AppConfig, load_config
from .logging_utils import configure_logging


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="apphub")
    p.add_argument(
        "--config",
        default=os.environ.get("APPHUB_CONFIG", "apphub.yml"),
        help="Path to config YAML (default: apphub.yml or APPHUB_CONFIG).",
    )
    sub = p.add_subparsers(dest="cmd", required=False)

    sub.add_parser("serve", help="Run the registry API and status channel (default).")
    sub.add_parser("probe", help="Probe every active app once and print the results as JSON.")
    sub.add_parser("print-config", help="Load config and print resolved values.")

    return p.parse_args(argv)


def _load(config_path: Path) -> AppConfig:
    if not config_path.exists():
        return AppConfig()
    return load_config(config_path)


async def _probe_once(config: AppConfig) -> list[dict]:
    from .health.prober import HealthProber
    from .registry.store import SqlAlchemyRegistryStore
    from .storage.database import DatabaseManager

    db = DatabaseManager(config.database)
    try:
        apps = SqlAlchemyRegistryStore(db).list_apps(active_only=True)
        results = await HealthProber(config.health).probe_all(apps)
    finally:
        db.engine.dispose()
    names = {app.id: app.name for app in apps}
    return [
        {
            "id": result.app_id,
            "name": names[result.app_id],
            "isHealthy": result.healthy,
            "lastChecked": result.checked_at.isoformat(),
        }
        for result in results
    ]


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    args = _parse_args(argv)
    cmd = args.cmd or "serve"

    config_path = Path(args.config)
    config = _load(config_path)
    configure_logging(config.logging.log_dir, config.logging.level)

    if cmd == "print-config":
        logger.info("Resolved config loaded from {}", config_path)
        print(json.dumps(config.model_dump(mode="json"), indent=2))
        return

    if cmd == "probe":
        print(json.dumps(asyncio.run(_probe_once(config)), indent=2))
        return

    from .api.server import run_server

    try:
        run_server(config)
    except KeyboardInterrupt:
        logger.info("Shutting down")


if __name__ == "__main__":
    main()
