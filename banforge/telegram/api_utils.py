"""Telegram Bot API calls that log failures instead of raising them."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from aiogram import Bot
from aiogram.exceptions import (
    TelegramAPIError,
    TelegramBadRequest,
    TelegramForbiddenError,
    TelegramNetworkError,
    TelegramRetryAfter,
)
from aiogram.types import BufferedInputFile, Message

P = ParamSpec("P")
T = TypeVar("T")

logger = logging.getLogger(__name__)

NETWORK_RETRY_DELAY = 2.0


async def safe_api_call(
    label: str,
    func: Callable[P, Awaitable[T]],
    *args: P.args,
    retries: int = 3,
    **kwargs: P.kwargs,
) -> T | None:
    """Run a Bot API call; ``None`` when Telegram refused it or ``retries`` ran out.

    Flood control (``retry_after``) and network errors are retried, everything
    else Telegram reports is logged once.
    """
    for attempt in range(1, retries + 1):
        try:
            return await func(*args, **kwargs)
        except TelegramRetryAfter as exc:
            delay = float(exc.retry_after or 1.0)
            reason = f"flood control, retry after {delay:.1f} s"
        except TelegramNetworkError as exc:
            delay = NETWORK_RETRY_DELAY * attempt
            reason = f"network error: {exc}"
        except TelegramForbiddenError:
            logger.warning("Telegram call '%s' forbidden; is the bot still in the chat?", label)
            return None
        except TelegramBadRequest as exc:
            logger.warning("Telegram call '%s' rejected: %s", label, exc)
            return None
        except TelegramAPIError as exc:
            logger.error("Telegram call '%s' failed: %s", label, exc, exc_info=True)
            return None
        if attempt == retries:
            logger.warning("Telegram call '%s' gave up after %s attempts (%s).", label, attempt, reason)
            return None
        logger.info("Telegram call '%s' attempt %s/%s hit %s.", label, attempt, retries, reason)
        await asyncio.sleep(delay)
    return None


async def safe_send_document(
    bot: Bot,
    chat_id: int,
    filename: str,
    data: bytes,
    *,
    caption: str | None = None,
) -> bool:
    """Upload ``data`` as a file attachment; return whether Telegram accepted it."""
    document = BufferedInputFile(data, filename=filename)
    sent = await safe_api_call(
        "bot.send_document", bot.send_document, chat_id, document, caption=caption
    )
    return sent is not None


async def safe_message_answer(message: Message | None, text: str, **kwargs) -> bool:
    if not message:
        return False
    return (await safe_api_call("message.answer", message.answer, text, **kwargs)) is not None
