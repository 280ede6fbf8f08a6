"""Async SQLite storage powered by SQLAlchemy."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy import DateTime, Float, Integer, String, delete, desc, func, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.config import StrategyConfig
from app.models import STATUS_ACTIVE, DecisionRecord
from app.storage import Storage, new_order_id

_CONFIG_ROW_ID = 1


class Base(DeclarativeBase):
    """Base declarative class for ORM models."""


class StrategyConfigORM(Base):
    __tablename__ = "strategy_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    symbol: Mapped[str] = mapped_column(String, nullable=False)
    timeframe: Mapped[str] = mapped_column(String, nullable=False)
    plus_di_threshold: Mapped[float] = mapped_column(Float, nullable=False)
    minus_di_threshold: Mapped[float] = mapped_column(Float, nullable=False)
    adx_minimum: Mapped[float] = mapped_column(Float, nullable=False)
    take_profit_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    stop_loss_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    leverage: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))


class OrderORM(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    symbol: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False)
    entry_price: Mapped[float] = mapped_column(Float, nullable=False)
    take_profit_price: Mapped[float] = mapped_column(Float, nullable=False)
    stop_loss_price: Mapped[float] = mapped_column(Float, nullable=False)
    leverage: Mapped[int] = mapped_column(Integer, nullable=False)
    timeframe: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, default=STATUS_ACTIVE, nullable=False)


def _config_from_row(row: StrategyConfigORM) -> StrategyConfig:
    return StrategyConfig(
        symbol=row.symbol,
        timeframe=row.timeframe,
        plus_di_threshold=row.plus_di_threshold,
        minus_di_threshold=row.minus_di_threshold,
        adx_minimum=row.adx_minimum,
        take_profit_percentage=row.take_profit_percentage,
        stop_loss_percentage=row.stop_loss_percentage,
        leverage=row.leverage,
    )


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite returns naive datetimes even for timezone-aware columns.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _record_from_row(row: OrderORM) -> DecisionRecord:
    return DecisionRecord(
        id=row.order_id,
        symbol=row.symbol,
        action=row.action,
        entry_price=row.entry_price,
        take_profit_price=row.take_profit_price,
        stop_loss_price=row.stop_loss_price,
        leverage=row.leverage,
        timeframe=row.timeframe,
        status=row.status,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
        closed_at=_as_utc(row.closed_at),
    )


class Database(Storage):
    """Persistence layer for the strategy config and decision records."""

    def __init__(self, db_path: str | Path = "data/bot.db", default_config: StrategyConfig | None = None) -> None:
        super().__init__(default_config)
        self.db_path = Path(db_path)
        self._engine: AsyncEngine = create_async_engine(f"sqlite+aiosqlite:///{self.db_path}", echo=False)
        self._session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine, expire_on_commit=False
        )

    async def init(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with self._session_factory() as session:
            await self._seed_config(session)
            await session.commit()

    async def close(self) -> None:
        await self._engine.dispose()

    async def healthcheck(self) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(select(func.count(OrderORM.id)).limit(1))
            _ = result.scalar_one_or_none()
        return True

    async def _seed_config(self, session: AsyncSession) -> None:
        values = self.default_config.model_dump()
        stmt = insert(StrategyConfigORM).values(id=_CONFIG_ROW_ID, updated_at=datetime.now(UTC), **values)
        await session.execute(stmt.on_conflict_do_nothing(index_elements=[StrategyConfigORM.id]))

    async def get_config(self) -> StrategyConfig:
        async with self._session_factory() as session:
            row = await session.get(StrategyConfigORM, _CONFIG_ROW_ID)
            if row is None:
                await self._seed_config(session)
                await session.commit()
                row = await session.get(StrategyConfigORM, _CONFIG_ROW_ID)
            return _config_from_row(row)

    async def _write_config(self, config: StrategyConfig) -> StrategyConfig:
        values = config.model_dump()
        async with self._session_factory() as session:
            await self._seed_config(session)
            row = await session.get(StrategyConfigORM, _CONFIG_ROW_ID)
            for field_name, value in values.items():
                setattr(row, field_name, value)
            row.updated_at = datetime.now(UTC)
            await session.commit()
        return config

    async def list_orders(self, limit: int | None = None) -> list[DecisionRecord]:
        async with self._session_factory() as session:
            query = select(OrderORM).order_by(desc(OrderORM.created_at), desc(OrderORM.id))
            if limit is not None:
                query = query.limit(limit)
            result = await session.execute(query)
            rows = result.scalars().all()
        return [_record_from_row(row) for row in rows]

    async def append_order(self, record: DecisionRecord) -> DecisionRecord:
        now = datetime.now(UTC)
        order = OrderORM(
            order_id=new_order_id(),
            created_at=now,
            updated_at=now,
            symbol=record.symbol,
            action=record.action,
            entry_price=record.entry_price,
            take_profit_price=record.take_profit_price,
            stop_loss_price=record.stop_loss_price,
            leverage=record.leverage,
            timeframe=record.timeframe,
            status=record.status,
        )
        async with self._session_factory() as session:
            session.add(order)
            await session.commit()
            await session.refresh(order)
        return _record_from_row(order)

    async def clear_orders(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(delete(OrderORM))
            await session.commit()
        return int(result.rowcount or 0)
