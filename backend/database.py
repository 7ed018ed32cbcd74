import os
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Use DATABASE_PATH env var for Docker, default to local path for development
DATABASE_PATH = os.environ.get("DATABASE_PATH", "./ledger.sqlite3")
SQLALCHEMY_DATABASE_URL = f"sqlite:///{DATABASE_PATH}"

# Seconds a writer waits on another connection's lock before SQLite gives up
SQLITE_BUSY_TIMEOUT = float(os.environ.get("SQLITE_BUSY_TIMEOUT", "5"))

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """One session per request; ledger writes commit inside it."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
