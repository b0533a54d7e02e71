"""Text rendering for chat messages."""

from __future__ import annotations

from ..domain.player import PlayerProfile
from ..storage.base import SnapshotRecord


def format_backup_caption(snapshot: SnapshotRecord, *, manual: bool = False) -> str:
    title = "MANUAL BACKUP" if manual else "AUTO BACKUP"
    return (
        f"🛡️ {title}: {snapshot.label}\n"
        f"👥 Players: {snapshot.total_count}\n"
        f"🔨 Banned: {snapshot.banned_count} · ✅ Clean: {snapshot.clean_count}\n"
        f"🕒 {snapshot.taken_at:%Y-%m-%d %H:%M:%S} UTC"
    )


def format_player_status(profile: PlayerProfile) -> str:
    lines = [
        f"👤 {profile.username or 'unknown'} ({profile.player_id})",
        f"Last seen: {profile.last_seen:%Y-%m-%d %H:%M} UTC",
    ]
    if profile.aliases:
        lines.append("Aliases: " + ", ".join(profile.aliases))
    if profile.is_banned:
        until = (
            f"until {profile.ban_expires_at:%Y-%m-%d %H:%M} UTC"
            if profile.ban_expires_at
            else "permanently"
        )
        lines.append(f"🔨 Banned {until}: {profile.ban_reason}")
    else:
        lines.append("✅ Not banned")
    lines.append(f"Bans so far: {profile.ban_count}")
    if profile.wallet:
        balances = ", ".join(f"{code}: {amount:g}" for code, amount in sorted(profile.wallet.items()))
        lines.append(f"Wallet: {balances}")
    return "\n".join(lines)
