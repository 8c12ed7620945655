import logging
from typing import Optional
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import settings

logger = logging.getLogger(__name__)

# 所有ORM模型的基类
Base = declarative_base()

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def create_db_engine(database_url: str) -> Engine:
    """
    根据URL创建SQLAlchemy引擎

    SQLite内存库使用StaticPool，保证同一进程内所有连接看到同一个库。
    """
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, connect_args=connect_args)

    return create_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,  # 使用前检查连接是否可用
        pool_size=5,
        max_overflow=10
    )


def get_session_factory() -> Optional[sessionmaker]:
    """
    懒加载全局会话工厂；未配置 DATABASE_URL 时返回 None
    """
    global _engine, _session_factory
    if _session_factory is None and settings.DATABASE_URL:
        try:
            _engine = create_db_engine(settings.DATABASE_URL)
            _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
            logger.info("Database engine created")
        except SQLAlchemyError as e:
            logger.warning(f"[Database] Failed to connect: {e}")
            _engine = None
            _session_factory = None
    return _session_factory


def init_db(session_factory: Optional[sessionmaker] = None) -> bool:
    """
    创建所有表，应用启动时调用

    Returns:
        是否成功
    """
    # 导入模型以注册到 Base.metadata
    from . import tables  # noqa: F401

    factory = session_factory or get_session_factory()
    if factory is None:
        logger.warning("[Database] DATABASE_URL not set, persistence disabled")
        return False
    try:
        Base.metadata.create_all(bind=factory.kw["bind"])
        logger.info("Database tables created/verified")
        return True
    except SQLAlchemyError as e:
        logger.error(f"[Database] Failed to create tables: {e}")
        return False
