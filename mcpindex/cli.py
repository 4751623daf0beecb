"""Command-line entry point running a registry sync into a database."""

from __future__ import annotations

import argparse
import asyncio
import os
import typing as typ

import msgspec
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from mcpindex.api.factory import build_catalog_service
from mcpindex.catalog.storage import init_catalog_storage
from mcpindex.catalog.sync import SyncOptions
from mcpindex.logging import configure_logging
from mcpindex.upstream.client import RegistryClientConfig, RegistryHTTPClient


async def _run(database_url: str, options: SyncOptions) -> dict[str, typ.Any]:
    engine = create_async_engine(database_url)
    config = RegistryClientConfig.from_env()
    client = RegistryHTTPClient(config)
    try:
        await init_catalog_storage(engine)
        service = build_catalog_service(
            client,
            config=config,
            session_factory=async_sessionmaker(engine, expire_on_commit=False),
        )
        result = await service.sync(options)
    finally:
        await client.aclose()
        await engine.dispose()
    return result.to_dict()


def _cap(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        msg = f"expected an integer, got {raw!r}"
        raise argparse.ArgumentTypeError(msg) from exc
    if value < 0:
        msg = f"must not be negative, got {value}"
        raise argparse.ArgumentTypeError(msg)
    return value


def main(argv: list[str] | None = None) -> int:
    """Sync the registry and print the summary as JSON.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on a clean run, 1 when the summary reports errors.

    """
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--database-url",
        default=os.environ.get("MCPINDEX_DATABASE_URL"),
        help="SQLAlchemy async URL (default: $MCPINDEX_DATABASE_URL)",
    )
    parser.add_argument(
        "--registry-url",
        default=None,
        help="Custom upstream listing URL; records are stored as unofficial",
    )
    parser.add_argument(
        "--max-apps",
        type=_cap,
        default=None,
        help="Stop after examining this many upstream servers (0: no cap)",
    )
    parser.add_argument(
        "--only-with-remotes",
        action="store_true",
        help="Skip servers without remote endpoints",
    )
    args = parser.parse_args(argv)
    if not args.database_url:
        parser.error("--database-url is required when MCPINDEX_DATABASE_URL is unset")

    configure_logging(os.environ.get("MCPINDEX_LOG_LEVEL", "INFO"))
    options = SyncOptions(
        registry_url=args.registry_url,
        max_apps=args.max_apps,
        only_with_remotes=args.only_with_remotes,
    )
    summary = asyncio.run(_run(args.database_url, options))
    print(msgspec.json.format(msgspec.json.encode(summary), indent=2).decode())
    return 1 if summary["errors"] > 0 else 0


if __name__ == "__main__":
    raise SystemExit(main())
