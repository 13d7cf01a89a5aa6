from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from typing import Generator
import logging
import redis
from .config import settings

logger = logging.getLogger(__name__)

database_url = settings.get_database_url

if database_url.startswith("sqlite"):
    # SQLite connections are shared across the request threadpool
    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # SQLite ignores REFERENCES and ON DELETE unless enabled per connection
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
else:
    engine = create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,  # Recycle connections after 30 minutes
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Redis setup - in-process store for testing
if settings.TESTING:
    class InMemoryRedis:
        """Dictionary store answering the subset of Redis calls the app makes."""

        def __init__(self):
            self.data = {}

        def setex(self, key, time, value):
            self.data[key] = str(value)
            return True

        def get(self, key):
            return self.data.get(key)

        def incr(self, key):
            self.data[key] = str(int(self.data.get(key, "0")) + 1)
            return int(self.data[key])

        def flushdb(self):
            self.data.clear()
            return True

    redis_client = InMemoryRedis()
else:
    redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)

# Database dependency
def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Redis dependency
def get_redis():
    """Get Redis client."""
    return redis_client

# Database initialization
def init_db():
    """Initialize database tables."""
    # Models must be imported so their tables are registered on Base.metadata
    from ..models import admin, doctor, patient, appointment, prescription  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")
