"""Command line helpers for BanForge."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .app import ServiceApp
from .config import BanForgeConfig
from .loaders import load_backup_file, validate_backup_file
from .validators import validate_config

console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run_server() -> None:
    parser = argparse.ArgumentParser(description="BanForge HTTP API")
    parser.add_argument("--host", help="Bind address (defaults to BANFORGE_HOST)")
    parser.add_argument("--port", type=int, help="Port (defaults to BANFORGE_PORT or PORT)")
    args = parser.parse_args()

    import uvicorn

    from .api import create_app

    config = BanForgeConfig.from_env()
    _configure_logging(config.log_level)
    for issue in validate_config(config):
        console.print(f"[yellow]config:[/yellow] {issue}")

    app = create_app(ServiceApp(config))
    uvicorn.run(
        app,
        host=args.host or config.host,
        port=args.port or config.port,
        log_level=config.log_level.lower(),
    )


def run_backup() -> None:
    parser = argparse.ArgumentParser(description="Take a BanForge snapshot and deliver it now")
    parser.add_argument("--label", help="Snapshot label")
    args = parser.parse_args()

    config = BanForgeConfig.from_env()
    _configure_logging(config.log_level)
    result = asyncio.run(_backup(config, args.label))
    if result is None:
        console.print("[yellow]Player store is empty; nothing to back up.[/yellow]")
        return
    snapshot, delivered = result
    table = Table(title=f"Snapshot {snapshot.snapshot_id}")
    table.add_column("Label")
    table.add_column("Players", justify="right")
    table.add_column("Banned", justify="right")
    table.add_column("Clean", justify="right")
    table.add_column("Delivered")
    table.add_row(
        snapshot.label,
        str(snapshot.total_count),
        str(snapshot.banned_count),
        str(snapshot.clean_count),
        "yes" if delivered else "no",
    )
    console.print(table)


async def _backup(config: BanForgeConfig, label: str | None):
    app = ServiceApp(config)
    try:
        await app.init_backend()
        result = await app.run_backup(label, manual=True, actor="cli")
    finally:
        await app.aclose()
    if result.snapshot is None:
        return None
    return result.snapshot, result.delivered


def run_restore() -> None:
    parser = argparse.ArgumentParser(description="Restore players from a backup JSON file")
    parser.add_argument("path", help="Backup file (chat export, API listing or snapshot detail)")
    parser.add_argument(
        "--check", action="store_true", help="Only validate the file, do not write anything"
    )
    args = parser.parse_args()

    path = Path(args.path)
    errors = validate_backup_file(path)
    if errors:
        console.print("[red]Backup file is invalid:[/red]")
        for err in errors:
            console.print(f"- {err}")
        sys.exit(1)
    if args.check:
        console.print("Backup file is valid ✅")
        return

    config = BanForgeConfig.from_env()
    _configure_logging(config.log_level)
    restored = asyncio.run(_restore(config, path))
    console.print(f"[bold green]Restored {restored} player(s).[/bold green]")


async def _restore(config: BanForgeConfig, path: Path) -> int:
    app = ServiceApp(config)
    try:
        await app.init_backend()
        return await app.admin_service.restore(players=load_backup_file(path), actor="cli")
    finally:
        await app.aclose()


def run_check() -> None:
    parser = argparse.ArgumentParser(description="BanForge configuration check")
    parser.parse_args()

    config = BanForgeConfig.from_env()
    issues = validate_config(config)
    if issues:
        console.print("[red]Configuration problems found:[/red]")
        for issue in issues:
            console.print(f"- {issue}")
        sys.exit(1)
    console.print("Configuration is valid ✅")
