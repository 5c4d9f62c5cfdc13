"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: db.py
@DateTime: 2026-10-17
@Docs: Process-scoped database handle with per-operation sessions.
进程级数据库句柄，按操作获取会话。

The handle is constructed once at process start and injected into every
component. Each operation acquires its own session through `Database.session()`
and releases it on exit.
句柄在进程启动时构建一次并注入各组件。每个操作通过 `Database.session()`
获取独立会话，退出时释放。
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from device_inventory.config import InventoryConfig
from device_inventory.exceptions import UpstreamError
from device_inventory.models import Base

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Async engine plus session factory.

    异步引擎与会话工厂。

    Examples:
        >>> db = Database("sqlite+aiosqlite:///inventory.db")
        >>> # async with db.session() as session: ...
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_kwargs: Any) -> None:
        """
        Initialize the engine and session factory.
        初始化引擎与会话工厂。

        Args:
            url: SQLAlchemy async database URL.
                SQLAlchemy 异步数据库 URL。
            echo: Echo SQL statements.
                是否打印 SQL。
            **engine_kwargs: Extra keyword arguments for `create_async_engine`.
                传给 `create_async_engine` 的额外参数。
        """
        self.url = url
        self.is_sqlite = url.startswith("sqlite")
        if self.is_sqlite:
            connect_args = dict(engine_kwargs.pop("connect_args", {}) or {})
            connect_args.setdefault("timeout", SQLITE_BUSY_TIMEOUT_SECONDS)
            engine_kwargs["connect_args"] = connect_args
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_kwargs)
        if self.is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    @classmethod
    def from_config(cls, config: InventoryConfig) -> "Database":
        """Build a handle from an InventoryConfig.
        根据 InventoryConfig 构建句柄。

        Args:
            config: Inventory configuration.
                台账配置。

        Returns:
            Database: The database handle.
                数据库句柄。
        """
        if not config.database_url:
            config.base_dir.mkdir(parents=True, exist_ok=True)
        return cls(config.resolved_database_url, echo=config.echo_sql)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session scoped to one operation.

        提供单次操作范围内的会话。

        Connectivity failures are surfaced as UpstreamError; every other
        exception propagates unchanged. Uncommitted work is rolled back on exit.
        连接类故障转换为 UpstreamError；其他异常原样抛出。退出时回滚未提交的工作。

        Yields:
            AsyncSession: A fresh session.
                新的会话。

        Raises:
            UpstreamError: When the datastore is unreachable.
                数据库不可达时抛出。
        """
        async with self.session_factory() as session:
            try:
                yield session
            except (OperationalError, InterfaceError) as exc:
                logger.exception("Datastore failure: %s", exc)
                raise UpstreamError(
                    message="Datastore unavailable / 数据库不可用",
                    details={"error": str(exc)},
                ) from exc

    async def create_all(self) -> None:
        """Create all tables (idempotent).
        创建全部数据表（幂等）。
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Dispose the engine and its connection pool.
        释放引擎及其连接池。
        """
        await self.engine.dispose()
