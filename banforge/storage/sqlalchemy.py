"""SQLAlchemy storage backend for BanForge."""

from __future__ import annotations

from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Mapping, Sequence

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    Integer,
    String,
    UniqueConstraint,
    delete,
    select,
    update,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..domain.exceptions import StorageUnavailable
from .base import AuditStore, PlayerRecord, PlayerStore, SnapshotRecord, SnapshotStore
from .documents import utc


class Base(DeclarativeBase):
    pass


class PlayerTable(Base):
    __tablename__ = "banforge_players"

    player_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    first_seen: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    last_seen: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    is_banned: Mapped[bool] = mapped_column(Boolean, default=False)
    ban_reason: Mapped[str] = mapped_column(String(1024), default="")
    ban_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ban_count: Mapped[int] = mapped_column(Integer, default=0)
    sanction_reference_id: Mapped[str | None] = mapped_column(String(255), nullable=True)


class PlayerAliasTable(Base):
    __tablename__ = "banforge_player_aliases"
    __table_args__ = (UniqueConstraint("player_id", "alias"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[str] = mapped_column(String(128), index=True)
    alias: Mapped[str] = mapped_column(String(255))


class PlayerBalanceTable(Base):
    __tablename__ = "banforge_player_balances"

    player_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    currency: Mapped[str] = mapped_column(String(64), primary_key=True)
    amount: Mapped[float] = mapped_column(Float, default=0.0)


class SnapshotTable(Base):
    __tablename__ = "banforge_snapshots"

    snapshot_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    taken_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    label: Mapped[str] = mapped_column(String(255))
    total_count: Mapped[int] = mapped_column(Integer)
    banned_count: Mapped[int] = mapped_column(Integer)
    clean_count: Mapped[int] = mapped_column(Integer)
    payload: Mapped[list[dict]] = mapped_column(JSON)


class AuditTable(Base):
    __tablename__ = "banforge_audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    action: Mapped[str] = mapped_column(String(128))
    payload: Mapped[dict] = mapped_column(JSON)


_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AsyncSQLAlchemyStorage:
    """Bundle of async stores backed by SQLAlchemy."""

    def __init__(self, dsn: str, *, echo: bool = False) -> None:
        self._engine = create_async_engine(dsn, echo=echo, future=True)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)
        dialect = self._engine.dialect.name
        if dialect not in _INSERTS:
            raise ValueError(f"Unsupported database dialect {dialect}; expected one of {sorted(_INSERTS)}")
        self._dialect = dialect

    async def init_models(self) -> None:
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (OperationalError, InterfaceError, OSError) as exc:
            raise StorageUnavailable(f"Cannot initialize database: {exc}") from exc

    async def dispose(self) -> None:
        await self._engine.dispose()

    def player_store(self) -> "AsyncSQLAlchemyPlayerStore":
        return AsyncSQLAlchemyPlayerStore(self._session_factory, self._dialect)

    def snapshot_store(self) -> "AsyncSQLAlchemySnapshotStore":
        return AsyncSQLAlchemySnapshotStore(self._session_factory, self._dialect)

    def audit_store(self) -> "AsyncSQLAlchemyAuditStore":
        return AsyncSQLAlchemyAuditStore(self._session_factory, self._dialect)


class _SQLAlchemyStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], dialect: str) -> None:
        self._session_factory = session_factory
        self._insert = _INSERTS[dialect]

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except (OperationalError, InterfaceError, OSError) as exc:
            raise StorageUnavailable(f"Database unavailable: {exc}") from exc


class AsyncSQLAlchemyPlayerStore(_SQLAlchemyStore, PlayerStore):
    async def upsert_presence(
        self,
        player_id: str,
        username: str | None,
        *,
        now: datetime,
        wallet: Mapping[str, float] | None = None,
    ) -> PlayerRecord:
        changes: dict[str, Any] = {"last_seen": now}
        if username:
            changes["username"] = username
        async with self._session() as session:
            stmt = self._insert(PlayerTable).values(
                player_id=player_id,
                username=username,
                first_seen=now,
                last_seen=now,
                is_banned=False,
                ban_reason="",
                ban_count=0,
            )
            await session.execute(
                stmt.on_conflict_do_update(index_elements=[PlayerTable.player_id], set_=changes)
            )
            if username:
                await self._add_alias(session, player_id, username)
            for currency, amount in (wallet or {}).items():
                await self._set_balance(session, player_id, currency, float(amount))
            await session.commit()
            record = await self._load(session, player_id)
        assert record is not None
        return record

    async def get(self, player_id: str) -> PlayerRecord | None:
        async with self._session() as session:
            return await self._load(session, player_id)

    async def list_players(self) -> Sequence[PlayerRecord]:
        async with self._session() as session:
            rows = (
                await session.execute(select(PlayerTable).order_by(PlayerTable.last_seen.desc()))
            ).scalars().all()
            aliases: dict[str, list[str]] = defaultdict(list)
            for player_id, alias in await session.execute(
                select(PlayerAliasTable.player_id, PlayerAliasTable.alias).order_by(PlayerAliasTable.id)
            ):
                aliases[player_id].append(alias)
            balances: dict[str, dict[str, float]] = defaultdict(dict)
            for player_id, currency, amount in await session.execute(
                select(
                    PlayerBalanceTable.player_id,
                    PlayerBalanceTable.currency,
                    PlayerBalanceTable.amount,
                )
            ):
                balances[player_id][currency] = amount
            return [
                _to_record(row, aliases.get(row.player_id, []), balances.get(row.player_id, {}))
                for row in rows
            ]

    async def delete(self, player_id: str) -> None:
        async with self._session() as session:
            await session.execute(delete(PlayerAliasTable).where(PlayerAliasTable.player_id == player_id))
            await session.execute(
                delete(PlayerBalanceTable).where(PlayerBalanceTable.player_id == player_id)
            )
            await session.execute(delete(PlayerTable).where(PlayerTable.player_id == player_id))
            await session.commit()

    async def apply_ban(
        self,
        player_id: str,
        *,
        reason: str,
        expires_at: datetime | None,
        reference_id: str | None,
        now: datetime,
        create_missing: bool = False,
    ) -> PlayerRecord | None:
        async with self._session() as session:
            if create_missing:
                stmt = self._insert(PlayerTable).values(
                    player_id=player_id,
                    first_seen=now,
                    last_seen=now,
                    is_banned=False,
                    ban_reason="",
                    ban_count=0,
                )
                await session.execute(stmt.on_conflict_do_nothing(index_elements=[PlayerTable.player_id]))
            result = await session.execute(
                update(PlayerTable)
                .where(PlayerTable.player_id == player_id)
                .values(
                    is_banned=True,
                    ban_reason=reason,
                    ban_expires_at=expires_at,
                    sanction_reference_id=reference_id,
                    ban_count=PlayerTable.ban_count + 1,
                )
            )
            if result.rowcount == 0:
                await session.rollback()
                return None
            await session.commit()
            return await self._load(session, player_id)

    async def clear_ban(
        self,
        player_id: str,
        *,
        expected_reference: str | None = None,
        expected_count: int | None = None,
    ) -> PlayerRecord | None:
        stmt = update(PlayerTable).where(
            PlayerTable.player_id == player_id,
            PlayerTable.is_banned.is_(True),
        )
        if expected_reference is None:
            stmt = stmt.where(PlayerTable.sanction_reference_id.is_(None))
        else:
            stmt = stmt.where(PlayerTable.sanction_reference_id == expected_reference)
        if expected_count is not None:
            stmt = stmt.where(PlayerTable.ban_count == expected_count)
        async with self._session() as session:
            result = await session.execute(stmt.values(**_CLEAN_VALUES))
            if result.rowcount == 0:
                await session.rollback()
                return None
            await session.commit()
            return await self._load(session, player_id)

    async def expire_bans(self, now: datetime, player_id: str | None = None) -> int:
        stmt = (
            update(PlayerTable)
            .where(
                PlayerTable.is_banned.is_(True),
                PlayerTable.ban_expires_at.is_not(None),
                PlayerTable.ban_expires_at <= now,
            )
            .values(**_CLEAN_VALUES)
        )
        if player_id is not None:
            stmt = stmt.where(PlayerTable.player_id == player_id)
        async with self._session() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount or 0

    async def replace(self, record: PlayerRecord) -> None:
        values = {
            "username": record.username,
            "first_seen": record.first_seen,
            "last_seen": record.last_seen,
            "is_banned": record.is_banned,
            "ban_reason": record.ban_reason,
            "ban_expires_at": record.ban_expires_at,
            "ban_count": record.ban_count,
            "sanction_reference_id": record.sanction_reference_id,
        }
        async with self._session() as session:
            stmt = self._insert(PlayerTable).values(player_id=record.player_id, **values)
            await session.execute(
                stmt.on_conflict_do_update(index_elements=[PlayerTable.player_id], set_=values)
            )
            await session.execute(
                delete(PlayerAliasTable).where(PlayerAliasTable.player_id == record.player_id)
            )
            await session.execute(
                delete(PlayerBalanceTable).where(PlayerBalanceTable.player_id == record.player_id)
            )
            for alias in record.aliases:
                await self._add_alias(session, record.player_id, alias)
            for currency, amount in record.wallet.items():
                await self._set_balance(session, record.player_id, currency, float(amount))
            await session.commit()

    async def _add_alias(self, session: AsyncSession, player_id: str, alias: str) -> None:
        stmt = self._insert(PlayerAliasTable).values(player_id=player_id, alias=alias)
        await session.execute(
            stmt.on_conflict_do_nothing(
                index_elements=[PlayerAliasTable.player_id, PlayerAliasTable.alias]
            )
        )

    async def _set_balance(
        self, session: AsyncSession, player_id: str, currency: str, amount: float
    ) -> None:
        stmt = self._insert(PlayerBalanceTable).values(
            player_id=player_id, currency=currency, amount=amount
        )
        await session.execute(
            stmt.on_conflict_do_update(
                index_elements=[PlayerBalanceTable.player_id, PlayerBalanceTable.currency],
                set_={"amount": stmt.excluded.amount},
            )
        )

    async def _load(self, session: AsyncSession, player_id: str) -> PlayerRecord | None:
        row = (
            await session.execute(
                select(PlayerTable)
                .where(PlayerTable.player_id == player_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
        if row is None:
            return None
        aliases = (
            await session.execute(
                select(PlayerAliasTable.alias)
                .where(PlayerAliasTable.player_id == player_id)
                .order_by(PlayerAliasTable.id)
            )
        ).scalars().all()
        balances = {
            currency: amount
            for currency, amount in await session.execute(
                select(PlayerBalanceTable.currency, PlayerBalanceTable.amount).where(
                    PlayerBalanceTable.player_id == player_id
                )
            )
        }
        return _to_record(row, list(aliases), balances)


_CLEAN_VALUES: dict[str, Any] = {
    "is_banned": False,
    "ban_reason": "",
    "ban_expires_at": None,
    "sanction_reference_id": None,
}


def _to_record(row: PlayerTable, aliases: list[str], wallet: dict[str, float]) -> PlayerRecord:
    return PlayerRecord(
        player_id=row.player_id,
        username=row.username,
        aliases=list(aliases),
        first_seen=utc(row.first_seen),
        last_seen=utc(row.last_seen),
        wallet=dict(wallet),
        is_banned=bool(row.is_banned),
        ban_reason=row.ban_reason or "",
        ban_expires_at=utc(row.ban_expires_at),
        ban_count=row.ban_count or 0,
        sanction_reference_id=row.sanction_reference_id,
    )


class AsyncSQLAlchemySnapshotStore(_SQLAlchemyStore, SnapshotStore):
    async def add(self, snapshot: SnapshotRecord) -> None:
        async with self._session() as session:
            session.add(
                SnapshotTable(
                    snapshot_id=snapshot.snapshot_id,
                    taken_at=snapshot.taken_at,
                    label=snapshot.label,
                    total_count=snapshot.total_count,
                    banned_count=snapshot.banned_count,
                    clean_count=snapshot.clean_count,
                    payload=[dict(entry) for entry in snapshot.payload],
                )
            )
            await session.commit()

    async def get(self, snapshot_id: str) -> SnapshotRecord | None:
        async with self._session() as session:
            row = await session.get(SnapshotTable, snapshot_id)
            return _to_snapshot(row) if row else None

    async def list_snapshots(self) -> Sequence[SnapshotRecord]:
        async with self._session() as session:
            rows = (
                await session.execute(select(SnapshotTable).order_by(SnapshotTable.taken_at.desc()))
            ).scalars().all()
            return [_to_snapshot(row) for row in rows]

    async def delete(self, snapshot_id: str) -> bool:
        async with self._session() as session:
            result = await session.execute(
                delete(SnapshotTable).where(SnapshotTable.snapshot_id == snapshot_id)
            )
            await session.commit()
            return bool(result.rowcount)


def _to_snapshot(row: SnapshotTable) -> SnapshotRecord:
    return SnapshotRecord(
        snapshot_id=row.snapshot_id,
        taken_at=utc(row.taken_at),
        label=row.label,
        total_count=row.total_count,
        banned_count=row.banned_count,
        clean_count=row.clean_count,
        payload=tuple(dict(entry) for entry in row.payload or ()),
    )


class AsyncSQLAlchemyAuditStore(_SQLAlchemyStore, AuditStore):
    async def add_entry(self, action: str, payload: dict) -> None:
        async with self._session() as session:
            session.add(
                AuditTable(
                    created_at=datetime.now(timezone.utc),
                    action=action,
                    payload=dict(payload),
                )
            )
            await session.commit()
