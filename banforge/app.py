"""Top level application object for BanForge services."""

from __future__ import annotations

import logging
from datetime import timedelta

from aiogram import Bot

from .admin.service import AdminService
from .config import BanForgeConfig
from .domain.bans import BanEngine, Clock, SanctionsAuthority, UnknownPlayerPolicy, utcnow
from .domain.events import EventBus
from .domain.identity import build_normalizer
from .domain.player import PlayerService
from .domain.snapshots import RetentionMode, RetentionPolicy, SnapshotService
from .sanctions.client import EOSSanctionsClient
from .scheduler import BackupChannel, BackupJob, BackupResult, BackupScheduler
from .storage.base import AuditStore, PlayerStore, SnapshotStore
from .storage.memory import InMemoryAuditStore, InMemoryPlayerStore, InMemorySnapshotStore
from .storage.sqlalchemy import AsyncSQLAlchemyStorage
from .telegram.delivery import TelegramBackupChannel

logger = logging.getLogger(__name__)


class ServiceApp:
    """Central dependency container used by the API, the bot and the CLI."""

    def __init__(
        self,
        config: BanForgeConfig,
        *,
        player_store: PlayerStore | None = None,
        snapshot_store: SnapshotStore | None = None,
        audit_store: AuditStore | None = None,
        sanctions: SanctionsAuthority | None = None,
        backup_channel: BackupChannel | None = None,
        event_bus: EventBus | None = None,
        scheduler: BackupScheduler | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.config = config
        self.event_bus = event_bus or EventBus()

        self._sqlalchemy_storage: AsyncSQLAlchemyStorage | None = None
        (
            self.player_store,
            self.snapshot_store,
            self.audit_store,
        ) = self._wire_storage(player_store, snapshot_store, audit_store)

        self._owned_sanctions: EOSSanctionsClient | None = None
        if sanctions is None and config.sanctions.configured:
            self._owned_sanctions = EOSSanctionsClient(config.sanctions)
            sanctions = self._owned_sanctions
        self.sanctions = sanctions

        self.engine = BanEngine(
            self.player_store,
            sanctions=sanctions,
            normalizer=build_normalizer(config.sanctions.identity_format),
            unknown_policy=UnknownPlayerPolicy(config.bans.unknown_policy),
            default_reason=config.bans.default_reason,
            clock=clock,
        )
        self.player_service = PlayerService(self.player_store, self.engine)
        self.snapshot_service = SnapshotService(
            self.player_store,
            self.snapshot_store,
            self.engine,
            retention=RetentionPolicy(
                mode=RetentionMode(config.backup.retention_mode),
                max_count=config.backup.max_count,
                max_age=timedelta(hours=config.backup.max_age_hours),
            ),
            export_prefix=config.backup.export_prefix,
        )
        self.admin_service = AdminService(
            self.engine,
            self.player_service,
            self.snapshot_service,
            self.audit_store,
            self.event_bus,
            audit_enabled=config.admin.enable_audit_logs,
        )

        self.bot: Bot | None = Bot(config.telegram.bot_token) if config.telegram.bot_token else None
        if backup_channel is None and self.bot and config.telegram.backup_chat_id is not None:
            backup_channel = TelegramBackupChannel(self.bot, config.telegram.backup_chat_id)
        self.backup_job = BackupJob(self.snapshot_service, backup_channel)
        self.scheduler = scheduler or BackupScheduler()

    def _wire_storage(
        self,
        player_store: PlayerStore | None,
        snapshot_store: SnapshotStore | None,
        audit_store: AuditStore | None,
    ) -> tuple[PlayerStore, SnapshotStore, AuditStore]:
        if player_store and snapshot_store and audit_store:
            return player_store, snapshot_store, audit_store

        backend = self.config.storage.backend
        if backend == "memory":
            return (
                player_store or InMemoryPlayerStore(),
                snapshot_store or InMemorySnapshotStore(),
                audit_store or InMemoryAuditStore(),
            )
        if backend == "sqlalchemy":
            dsn = self.config.storage.resolve_dsn()
            if not dsn:
                raise ValueError("SQLAlchemy backend requires a DSN")
            storage = AsyncSQLAlchemyStorage(dsn, echo=self.config.storage.echo_sql)
            self._sqlalchemy_storage = storage
            return (
                player_store or storage.player_store(),
                snapshot_store or storage.snapshot_store(),
                audit_store or storage.audit_store(),
            )
        raise ValueError(f"Unsupported storage backend {backend}")

    async def run_backup(
        self, label: str | None = None, *, manual: bool = False, actor: str = "scheduler"
    ) -> BackupResult:
        result = await self.backup_job.run(label, manual=manual)
        if result.snapshot is not None:
            await self.admin_service.record_snapshot(result.snapshot, actor=actor)
        return result

    def arm_backup_schedule(self) -> None:
        backup = self.config.backup
        if not backup.enabled:
            logger.info("Recurring backups disabled.")
            return
        if backup.interval_minutes:
            self.scheduler.schedule_recurring(
                self.run_backup,
                interval=timedelta(minutes=backup.interval_minutes),
                timezone=backup.timezone,
            )
        else:
            self.scheduler.schedule_recurring(
                self.run_backup, cron=backup.cron, timezone=backup.timezone
            )

    async def init_backend(self) -> None:
        """Initialize storage backend resources (e.g., database tables)."""
        if self._sqlalchemy_storage:
            await self._sqlalchemy_storage.init_models()

    async def aclose(self) -> None:
        self.scheduler.shutdown()
        if self._owned_sanctions is not None:
            await self._owned_sanctions.aclose()
        if self.bot is not None:
            await self.bot.session.close()
        if self._sqlalchemy_storage is not None:
            await self._sqlalchemy_storage.dispose()
