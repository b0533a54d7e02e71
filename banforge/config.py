"""Configuration models for BanForge."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal


StorageBackend = Literal["memory", "sqlalchemy"]

_TRUE = {"1", "true", "yes"}


@dataclass(slots=True)
class StorageConfig:
    """Configure how players and snapshots are persisted."""

    backend: StorageBackend = "memory"
    dsn: str | None = None
    echo_sql: bool = False

    def resolve_dsn(self) -> str | None:
        if self.dsn:
            return self.dsn
        if self.backend == "sqlalchemy":
            return "sqlite+aiosqlite:///./banforge.db"
        return None


@dataclass(slots=True)
class AdminCommandConfig:
    """Allows renaming admin bot commands."""

    ban: str = "ban"
    unban: str = "unban"
    player: str = "player"
    backup: str = "backup"


@dataclass(slots=True)
class AdminConfig:
    """Shared-secret HTTP auth and Telegram admin tooling."""

    secret: str = ""
    telegram_admin_ids: set[int] = field(default_factory=set)
    enable_audit_logs: bool = True
    commands: AdminCommandConfig = field(default_factory=AdminCommandConfig)


@dataclass(slots=True)
class BanConfig:
    """Local ban behaviour."""

    unknown_policy: Literal["reject", "create"] = "reject"
    default_reason: str = "Manual Ban via Admin Tool"


@dataclass(slots=True)
class SanctionsConfig:
    """Epic Online Services sanctions API credentials."""

    enabled: bool = False
    api_url: str = "https://api.epicgames.dev"
    deployment_id: str = ""
    client_id: str = ""
    client_secret: str = ""
    action: str = "BAN_GAMEPLAY"
    timeout_seconds: float = 10.0
    token_refresh_margin_seconds: float = 300.0
    identity_format: str = "raw"

    @property
    def configured(self) -> bool:
        return self.enabled and bool(self.deployment_id and self.client_id and self.client_secret)


@dataclass(slots=True)
class BackupConfig:
    """Recurring snapshot schedule and retention."""

    enabled: bool = True
    cron: str = "59 23 * * *"
    timezone: str = "America/New_York"
    interval_minutes: int | None = None
    retention_mode: Literal["count", "age"] = "count"
    max_count: int = 24
    max_age_hours: float = 24.0
    export_prefix: str = "GW"


@dataclass(slots=True)
class TelegramConfig:
    """Bot used to deliver backups and answer admin commands."""

    bot_token: str = ""
    backup_chat_id: int | None = None
    enable_admin_commands: bool = False


@dataclass(slots=True)
class BanForgeConfig:
    """Top-level configuration container."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    admin: AdminConfig = field(default_factory=AdminConfig)
    bans: BanConfig = field(default_factory=BanConfig)
    sanctions: SanctionsConfig = field(default_factory=SanctionsConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "BanForgeConfig":
        """Create config from environment variables prefixed with BANFORGE_."""
        prefix = "BANFORGE_"

        def env(name: str, default: str = "") -> str:
            return os.getenv(f"{prefix}{name}", default)

        def flag(name: str, default: str) -> bool:
            return env(name, default).lower() in _TRUE

        admin_ids = {
            int(_id.strip())
            for _id in env("TELEGRAM_ADMIN_IDS").split(",")
            if _id.strip()
        }

        storage = StorageConfig(
            backend=env("STORAGE_BACKEND", "memory"),  # type: ignore[arg-type]
            dsn=env("STORAGE_DSN") or None,
            echo_sql=flag("STORAGE_ECHO_SQL", "false"),
        )

        admin = AdminConfig(
            secret=env("ADMIN_SECRET"),
            telegram_admin_ids=admin_ids,
            enable_audit_logs=flag("ADMIN_ENABLE_AUDIT_LOGS", "true"),
            commands=AdminCommandConfig(
                ban=env("ADMIN_CMD_BAN", "ban") or "ban",
                unban=env("ADMIN_CMD_UNBAN", "unban") or "unban",
                player=env("ADMIN_CMD_PLAYER", "player") or "player",
                backup=env("ADMIN_CMD_BACKUP", "backup") or "backup",
            ),
        )

        bans = BanConfig(
            unknown_policy=env("BAN_UNKNOWN_POLICY", "reject").lower(),  # type: ignore[arg-type]
            default_reason=env("BAN_DEFAULT_REASON", "Manual Ban via Admin Tool")
            or "Manual Ban via Admin Tool",
        )

        sanctions = SanctionsConfig(
            enabled=flag("SANCTIONS_ENABLED", "false"),
            api_url=env("SANCTIONS_API_URL", "https://api.epicgames.dev"),
            deployment_id=env("EOS_DEPLOYMENT_ID"),
            client_id=env("EOS_CLIENT_ID"),
            client_secret=env("EOS_CLIENT_SECRET"),
            action=env("SANCTIONS_ACTION", "BAN_GAMEPLAY"),
            timeout_seconds=_parse_float(env("SANCTIONS_TIMEOUT", "10"), "SANCTIONS_TIMEOUT"),
            token_refresh_margin_seconds=_parse_float(
                env("SANCTIONS_TOKEN_MARGIN", "300"), "SANCTIONS_TOKEN_MARGIN"
            ),
            identity_format=env("SANCTIONS_IDENTITY_FORMAT", "raw").lower(),
        )

        interval = env("BACKUP_INTERVAL_MINUTES")
        backup = BackupConfig(
            enabled=flag("BACKUP_ENABLED", "true"),
            cron=env("BACKUP_CRON", "59 23 * * *"),
            timezone=env("BACKUP_TIMEZONE", "America/New_York"),
            interval_minutes=_parse_int(interval, "BACKUP_INTERVAL_MINUTES") if interval else None,
            retention_mode=env("BACKUP_RETENTION_MODE", "count").lower(),  # type: ignore[arg-type]
            max_count=_parse_int(env("BACKUP_MAX_COUNT", "24"), "BACKUP_MAX_COUNT"),
            max_age_hours=_parse_float(env("BACKUP_MAX_AGE_HOURS", "24"), "BACKUP_MAX_AGE_HOURS"),
            export_prefix=env("BACKUP_EXPORT_PREFIX", "GW") or "GW",
        )

        chat_id = env("TELEGRAM_BACKUP_CHAT_ID")
        telegram = TelegramConfig(
            bot_token=env("TELEGRAM_BOT_TOKEN"),
            backup_chat_id=_parse_int(chat_id, "TELEGRAM_BACKUP_CHAT_ID") if chat_id else None,
            enable_admin_commands=flag("TELEGRAM_ADMIN_COMMANDS", "false"),
        )

        return cls(
            storage=storage,
            admin=admin,
            bans=bans,
            sanctions=sanctions,
            backup=backup,
            telegram=telegram,
            host=env("HOST", "0.0.0.0"),
            port=_parse_int(env("PORT", os.getenv("PORT", "3000")), "PORT"),
            log_level=env("LOG_LEVEL", "INFO").upper(),
        )


def _parse_int(raw: str, name: str) -> int:
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"BANFORGE_{name} must be an integer, got {raw!r}") from exc


def _parse_float(raw: str, name: str) -> float:
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"BANFORGE_{name} must be a number, got {raw!r}") from exc
