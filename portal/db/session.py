# portal/db/session.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from portal import config

# SQLite + FastAPI threadpool: allow the connection to cross threads
connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    config.DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


# FastAPI dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
