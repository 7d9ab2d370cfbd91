# calltrainer/db/session.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from calltrainer import config

# Engine + session factory (local SQLite file unless DATABASE_URL says otherwise)
engine = create_engine(config.DATABASE_URL, pool_pre_ping=True, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

