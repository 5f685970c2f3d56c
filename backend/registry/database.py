"""Database connection and session management."""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, URL, make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool
from registry.config import settings

POOLER_PORT = 6543


def resolve_database_url(database_url: str) -> URL:
    """Parse the URL, pinning bare postgresql:// to the psycopg2 driver."""
    url = make_url(database_url)
    if url.drivername == "postgresql":
        url = url.set(drivername="postgresql+psycopg2")
    return url


def build_engine(database_url: str, environment: str) -> Engine:
    """Create the SQLAlchemy engine for the durable store."""
    url = resolve_database_url(database_url)
    # Use NullPool behind an external pooler (PgBouncer/Supabase, port 6543)
    # and in tests. For stationary servers, use regular pooling.
    if environment in ("development", "production"):
        if "pooler" in (url.host or "") or url.port == POOLER_PORT:
            return create_engine(
                url,
                poolclass=NullPool,  # Required for pooler connections
                echo=environment == "development",
            )
        # Direct connection for stationary servers
        return create_engine(
            url,
            pool_size=20,
            max_overflow=10,
            pool_pre_ping=True,
            echo=environment == "development",
        )
    return create_engine(url, poolclass=NullPool)


engine = build_engine(settings.database_url, settings.environment)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
