"""Telegram integration helpers."""

from .delivery import TelegramBackupChannel
from .filters import AdminFilter
from .formatters import format_backup_caption, format_player_status

__all__ = [
    "AdminFilter",
    "TelegramBackupChannel",
    "format_backup_caption",
    "format_player_status",
]
