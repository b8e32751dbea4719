import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

# Базовый класс для моделей
Base = declarative_base()


def _enable_sqlite_write_locks(engine: AsyncEngine) -> None:
    """
    SQLite не поддерживает SELECT ... FOR UPDATE.
    Каждая транзакция открывается через BEGIN IMMEDIATE: вторая транзакция
    ждет, пока первая не завершится.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Отключаем неявный BEGIN драйвера, транзакцией управляем сами
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """
    Шлюз к хранилищу данных: пул соединений и фабрика сессий.

    Создается явно при старте приложения (connect) и закрывается при
    остановке (dispose). Сессии выдаются только через контекстные менеджеры,
    поэтому соединение возвращается в пул на любом пути выхода,
    включая отмену задачи.
    """

    def __init__(
            self,
            url: str,
            echo: bool = False,
            pool_size: Optional[int] = None,
            max_overflow: Optional[int] = None
    ):
        self.url = url
        self.echo = echo
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[sessionmaker] = None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def connect(self) -> None:
        """Создает движок и фабрику сессий"""
        if self.engine is not None:
            return

        engine_kwargs = {"echo": self.echo, "future": True, "pool_pre_ping": True}
        if not self.is_sqlite:
            if self.pool_size is not None:
                engine_kwargs["pool_size"] = self.pool_size
            if self.max_overflow is not None:
                engine_kwargs["max_overflow"] = self.max_overflow

        self.engine = create_async_engine(self.url, **engine_kwargs)
        if self.is_sqlite:
            _enable_sqlite_write_locks(self.engine)

        self.session_factory = sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )
        logger.info(f"✅ Database engine created ({self.engine.dialect.name})")

    async def create_all(self) -> None:
        """Создает таблицы по метаданным моделей"""
        # Импорт регистрирует модели в Base.metadata
        from . import models  # noqa: F401

        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Database tables created")

    async def dispose(self) -> None:
        """Закрывает все соединения пула"""
        if self.engine is None:
            return
        await self.engine.dispose()
        self.engine = None
        self.session_factory = None
        logger.info("✅ Database connection closed")

    async def ping(self) -> bool:
        """Проверка доступности БД"""
        try:
            async with self._require_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"❌ Database ping failed: {e}")
            return False

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Сессия без явной транзакции (для чтения)"""
        if self.session_factory is None:
            raise RuntimeError("Database is not connected")
        async with self.session_factory() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Сессия внутри одной транзакции.
        Commit при нормальном выходе, rollback при любом исключении.
        """
        async with self.session() as session:
            async with session.begin():
                yield session

    def _require_engine(self) -> AsyncEngine:
        if self.engine is None:
            raise RuntimeError("Database is not connected")
        return self.engine
