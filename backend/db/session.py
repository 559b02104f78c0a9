# backend/db/session.py
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from core.config import settings


Base = declarative_base()


def make_engine(url: str, **engine_kwargs) -> Engine:
    """
    Build an engine for `url`. SQLite only enforces ON DELETE CASCADE when
    foreign keys are switched on per connection.
    """
    if url.startswith("sqlite"):
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
    eng = create_engine(url, **engine_kwargs)

    if eng.dialect.name == "sqlite":
        @event.listens_for(eng, "connect")
        def _fk_pragma(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

    return eng


engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
