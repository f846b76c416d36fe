#!/usr/bin/env python3
"""Run the movecar JSON API.

Configuration comes from ``MOVECAR_*`` environment variables (see
``MoveCarConfig.from_env``); push channel settings come from
``PUSHPLUS_TOKEN[_<USER>]``, ``BARK_URL[_<USER>]`` and
``CAR_TITLE[_<USER>]``.

Without ``MOVECAR_REDIS_URL`` (or ``--redis-url``) state lives in process
memory and is lost on restart.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from aiohttp import web  # noqa: E402

from movecar import EnvSettingResolver, MemoryStore, MoveCarConfig, MoveCarService, RedisStore  # noqa: E402
from movecar.store import ExpiringStore  # noqa: E402
from movecar.web import create_app  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the movecar API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--redis-url", default=None, help="Overrides MOVECAR_REDIS_URL")
    parser.add_argument("--external-url", default=None, help="Public base URL used in confirm links")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, str] = {}
    if args.redis_url:
        overrides["redis_url"] = args.redis_url
    if args.external_url:
        overrides["external_url"] = args.external_url
    config = MoveCarConfig.from_env(**overrides)

    store: ExpiringStore
    if config.redis_url:
        store = RedisStore.from_url(config.redis_url)
    else:
        logging.getLogger(__name__).warning("No Redis URL configured, using in-process store")
        store = MemoryStore()

    service = MoveCarService(config, store, EnvSettingResolver())
    app = create_app(service)
    if isinstance(store, RedisStore):
        redis_store = store

        async def _close_store(_app: web.Application) -> None:
            await redis_store.close()

        app.on_cleanup.append(_close_store)
    web.run_app(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
