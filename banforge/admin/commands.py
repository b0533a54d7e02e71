"""Admin command wiring for aiogram."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from ..domain.bans import ban_duration
from ..domain.exceptions import BanForgeError
from ..telegram.api_utils import safe_message_answer
from ..telegram.filters import AdminFilter
from ..telegram.formatters import format_player_status

if TYPE_CHECKING:
    from ..app import ServiceApp


def parse_ban_arguments(text: str | None) -> tuple[str, timedelta | None, str | None] | None:
    """Split ``/ban <id> [minutes] [reason...]`` into its parts.

    Raises :class:`InvalidBanDuration` for minutes that are not finite or too large.
    """
    parts = (text or "").split()
    if len(parts) < 2:
        return None
    player_id = parts[1]
    rest = parts[2:]
    duration = None
    if rest:
        try:
            minutes = float(rest[0])
        except ValueError:
            minutes = None
        if minutes is not None:
            duration = ban_duration(minutes)
            rest = rest[1:]
    reason = " ".join(rest) or None
    return player_id, duration, reason


def build_admin_router(app: "ServiceApp") -> Router:
    router = Router()
    router.message.filter(AdminFilter(app.config))
    service = app.admin_service
    commands = app.config.admin.commands

    def actor(message: Message) -> str:
        return f"telegram:{message.from_user.id}" if message.from_user else "telegram"

    @router.message(Command(commands.ban))
    async def handle_ban(message: Message) -> None:
        try:
            parsed = parse_ban_arguments(message.text)
        except BanForgeError as exc:
            await safe_message_answer(message, f"❌ {exc.kind}: {exc}")
            return
        if parsed is None:
            await safe_message_answer(
                message, f"Usage: /{commands.ban} <player_id> [minutes] [reason]"
            )
            return
        player_id, duration, reason = parsed
        try:
            profile = await service.ban_player(
                player_id, reason=reason, duration=duration, actor=actor(message)
            )
        except BanForgeError as exc:
            await safe_message_answer(message, f"❌ {exc.kind}: {exc}")
            return
        await safe_message_answer(message, format_player_status(profile))

    @router.message(Command(commands.unban))
    async def handle_unban(message: Message) -> None:
        parts = (message.text or "").split()
        if len(parts) < 2:
            await safe_message_answer(message, f"Usage: /{commands.unban} <player_id>")
            return
        try:
            await service.unban_player(parts[1], actor=actor(message))
        except BanForgeError as exc:
            await safe_message_answer(message, f"❌ {exc.kind}: {exc}")
            return
        await safe_message_answer(message, f"🕊️ Player {parts[1]} unbanned.")

    @router.message(Command(commands.player))
    async def handle_player(message: Message) -> None:
        parts = (message.text or "").split()
        if len(parts) < 2:
            await safe_message_answer(message, f"Usage: /{commands.player} <player_id>")
            return
        try:
            profile = await app.player_service.fetch(parts[1])
        except BanForgeError as exc:
            await safe_message_answer(message, f"❌ {exc.kind}: {exc}")
            return
        await safe_message_answer(message, format_player_status(profile))

    @router.message(Command(commands.backup))
    async def handle_backup(message: Message) -> None:
        try:
            result = await app.run_backup(manual=True, actor=actor(message))
        except BanForgeError as exc:
            await safe_message_answer(message, f"❌ {exc.kind}: {exc}")
            return
        if result.snapshot is None:
            await safe_message_answer(message, "No players stored yet; nothing to back up.")
        elif app.backup_job.channel is None:
            await safe_message_answer(
                message, f"Snapshot {result.snapshot.snapshot_id} stored (no backup chat configured)."
            )
        elif not result.delivered:
            await safe_message_answer(message, "Snapshot stored but the file could not be sent.")

    return router
