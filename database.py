from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from config import DATABASE_URL


def _normalize_url(url: str) -> str:
    # Render/Heroku entregam "postgres://"; o SQLAlchemy 2.0 quer o driver explícito
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


SQLALCHEMY_DATABASE_URL = _normalize_url(DATABASE_URL)

engine_kwargs = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    engine_kwargs["pool_pre_ping"] = True

engine = create_engine(SQLALCHEMY_DATABASE_URL, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db() -> None:
    # importa os modelos para registrá-los no metadata
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db() -> Session:
    """Uma sessão por requisição, sempre fechada ao final."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
