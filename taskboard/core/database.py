from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from os import getenv

DATABASE_URL = getenv("DATABASE_URL", "postgresql+psycopg://taskboard:taskboard@db:5432/taskboard")


def _engine_options(url: str) -> dict:
    # SQLite (dev local): la session peut changer de thread entre deux requêtes
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    # Postgres: les workers de sweep gardent des connexions longtemps
    return {"pool_pre_ping": True}


engine = create_engine(DATABASE_URL, echo=False, **_engine_options(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Dépendance session DB, une par requête"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
