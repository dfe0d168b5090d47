import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from coursehub.core.config import settings

logger = logging.getLogger("coursehub.db.session")
if not logging.getLogger().handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

DATABASE_URL = settings.DATABASE_URL
logger.info("Initializing DB session (checking configuration)")
logger.info("DATABASE_URL configured: %s", bool(DATABASE_URL))

if not DATABASE_URL:
    logger.error("DATABASE_URL is not configured. Set the DATABASE_URL env var.")
    raise RuntimeError("DATABASE_URL is not configured. Set the DATABASE_URL env var.")

engine_options = {"pool_pre_ping": True}
if DATABASE_URL.startswith("sqlite"):
    # one shared connection so an in-memory database survives across sessions
    engine_options.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)

engine = create_engine(DATABASE_URL, **engine_options)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
