from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from diamondapi.config import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}

    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,  # 연결 유효성 검사
        "pool_recycle": 3600,  # 1시간마다 연결 재생성
        "connect_args": {"options": f"-csearch_path={settings.POSTGRES_SCHEMA}"},
    }


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """SQLite는 연결마다 외래 키 제약(ON DELETE SET NULL 포함)을 켜야 함"""

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_db_engine(url: str, **kwargs) -> Engine:
    options = _engine_kwargs(url)
    options.update(kwargs)
    db_engine = create_engine(url, echo=settings.DEBUG, **options)  # 디버그 모드에서 SQL 로깅
    if db_engine.dialect.name == "sqlite":
        enable_sqlite_foreign_keys(db_engine)
    return db_engine


engine = create_db_engine(settings.database_url)

# Use expire_on_commit=False to avoid DetachedInstanceError when accessing
# attributes after commit within the same request scope (common FastAPI pattern).
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)
