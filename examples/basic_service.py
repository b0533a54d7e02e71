"""BanForge wiring example: a custom backup channel, event listeners and the HTTP server."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from banforge import BanForgeConfig, ServiceApp
from banforge.domain import events

logger = logging.getLogger("banforge.example")


class StdoutBackupChannel:
    """Print backups instead of sending them to Telegram."""

    async def deliver(self, filename: str, data: bytes, caption: str) -> bool:
        print(f"{filename} ({len(data)} bytes)\n{caption}")
        return True


def register(app: ServiceApp) -> None:
    """Log every ban and snapshot published on the event bus."""

    async def log_ban(payload) -> None:
        logger.warning(
            "Player %s banned by %s: %s", payload["player_id"], payload["actor"], payload["reason"]
        )

    async def log_snapshot(payload) -> None:
        logger.info("Snapshot %s (%s players) ready.", payload["snapshot_id"], payload["total"])

    app.event_bus.subscribe(events.PLAYER_BANNED, log_ban)
    app.event_bus.subscribe(events.SNAPSHOT_CREATED, log_snapshot)


async def dry_run() -> None:
    """Heartbeat, a short timed ban, its expiry and a manual backup in memory."""
    app = ServiceApp(BanForgeConfig(), backup_channel=StdoutBackupChannel())
    register(app)

    await app.player_service.track("abc123", "Bob", wallet={"sheckles": 120, "scrap": 4})
    await app.admin_service.ban_player(
        "abc123", reason="cheating", duration=timedelta(seconds=1), actor="example"
    )
    print("banned:", (await app.player_service.track("abc123", "Bob")).is_banned)

    await asyncio.sleep(1.1)
    print("after expiry:", (await app.player_service.track("abc123", "Bob")).is_banned)

    await app.run_backup(manual=True, actor="example")
    await app.aclose()


def run_server() -> None:
    import uvicorn

    from banforge.api import create_app

    app = ServiceApp(BanForgeConfig.from_env())
    register(app)
    uvicorn.run(create_app(app), host=app.config.host, port=app.config.port)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(dry_run())
