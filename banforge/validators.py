"""Validation utilities for BanForge configuration."""

from __future__ import annotations

from apscheduler.triggers.cron import CronTrigger

from .config import BanForgeConfig
from .domain.bans import UnknownPlayerPolicy
from .domain.identity import build_normalizer
from .domain.snapshots import RetentionMode


def validate_config(config: BanForgeConfig) -> list[str]:
    """Return list of configuration problems."""
    errors: list[str] = []

    if config.storage.backend not in {"memory", "sqlalchemy"}:
        errors.append(f"Unsupported storage backend '{config.storage.backend}'.")

    if not config.admin.secret:
        errors.append("Admin secret is not set; every admin endpoint will answer 401.")

    try:
        UnknownPlayerPolicy(config.bans.unknown_policy)
    except ValueError:
        errors.append(
            f"Unknown-player policy '{config.bans.unknown_policy}' must be 'reject' or 'create'."
        )

    sanctions = config.sanctions
    if sanctions.enabled:
        missing = [
            name
            for name, value in (
                ("deployment id", sanctions.deployment_id),
                ("client id", sanctions.client_id),
                ("client secret", sanctions.client_secret),
            )
            if not value
        ]
        if missing:
            errors.append("Sanctions enabled but missing " + ", ".join(missing) + ".")
        if sanctions.timeout_seconds <= 0:
            errors.append("Sanctions timeout must be positive.")
        if sanctions.token_refresh_margin_seconds < 0:
            errors.append("Sanctions token refresh margin cannot be negative.")
    try:
        build_normalizer(sanctions.identity_format)
    except ValueError:
        errors.append(f"Unknown sanctions identity format '{sanctions.identity_format}'.")

    backup = config.backup
    try:
        mode = RetentionMode(backup.retention_mode)
    except ValueError:
        errors.append(f"Retention mode '{backup.retention_mode}' must be 'count' or 'age'.")
    else:
        if mode is RetentionMode.COUNT and backup.max_count < 1:
            errors.append("Retention max_count must be at least 1.")
        if mode is RetentionMode.AGE and backup.max_age_hours <= 0:
            errors.append("Retention max_age_hours must be positive.")
    if backup.interval_minutes is not None and backup.interval_minutes <= 0:
        errors.append("Backup interval must be a positive number of minutes.")
    if backup.enabled and backup.interval_minutes is None:
        try:
            CronTrigger.from_crontab(backup.cron, timezone=backup.timezone)
        except (ValueError, KeyError) as exc:
            errors.append(f"Invalid backup schedule '{backup.cron}' ({backup.timezone}): {exc}")

    telegram = config.telegram
    if telegram.bot_token:
        if ":" not in telegram.bot_token or len(telegram.bot_token) < 40:
            errors.append(
                "Telegram bot token looks malformed; expected '<bot id>:<secret>' as issued by BotFather."
            )
    elif telegram.backup_chat_id is not None or telegram.enable_admin_commands:
        errors.append("Telegram chat features configured but the bot token is missing.")
    if telegram.bot_token and telegram.backup_chat_id is None:
        errors.append("Telegram bot token set but no backup chat id; backups stay local.")
    if telegram.enable_admin_commands and not config.admin.telegram_admin_ids:
        errors.append("Telegram admin commands enabled but no admin ids configured.")

    return errors


__all__ = ["validate_config"]
