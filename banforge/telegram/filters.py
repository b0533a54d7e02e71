"""Reusable aiogram filters for BanForge bots."""

from __future__ import annotations

from aiogram.filters import BaseFilter
from aiogram.types import Message

from ..config import BanForgeConfig


class AdminFilter(BaseFilter):
    def __init__(self, config: BanForgeConfig) -> None:
        self._admins = set(config.admin.telegram_admin_ids)

    async def __call__(self, message: Message) -> bool:
        user = message.from_user
        return bool(user and user.id in self._admins)
