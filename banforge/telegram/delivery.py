"""Deliver backup exports to a Telegram chat."""

from __future__ import annotations

import logging

from aiogram import Bot

from .api_utils import safe_send_document

logger = logging.getLogger(__name__)


class TelegramBackupChannel:
    """Send snapshot files as documents to a single chat."""

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self._bot = bot
        self._chat_id = chat_id

    async def deliver(self, filename: str, data: bytes, caption: str) -> bool:
        delivered = await safe_send_document(
            self._bot, self._chat_id, filename, data, caption=caption
        )
        if delivered:
            logger.info("Backup %s sent to chat %s.", filename, self._chat_id)
        else:
            logger.error("Backup %s could not be delivered to chat %s.", filename, self._chat_id)
        return delivered
