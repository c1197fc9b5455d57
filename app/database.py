import ssl

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from app.config import get_settings

settings = get_settings()


def _engine_options(db_url: str) -> dict:
    """Pool and SSL options for the configured database URL.

    Hosted Postgres requires SSL and asyncpg needs an ssl.SSLContext; a local
    SQLite URL (handy for development) takes no pool sizing at all.
    """
    if db_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}

    connect_args = {}
    if "localhost" not in db_url and "127.0.0.1" not in db_url:
        ssl_ctx = ssl.create_default_context()
        ssl_ctx.check_hostname = False
        ssl_ctx.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = ssl_ctx

    return {
        "pool_size": 20,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "connect_args": connect_args,
    }


engine = create_async_engine(
    settings.async_database_url,
    echo=settings.app_debug,
    **_engine_options(settings.async_database_url),
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
