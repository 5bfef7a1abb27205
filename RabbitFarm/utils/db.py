from sqlalchemy import MetaData, create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from config.settings import settings

# Convención de nombres para constraints / índices
convention = {
    "ix": "ix_%(table_name)s_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    pool_recycle=3600,
    connect_args=_connect_args,
    future=True,
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=convention)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_schema(bind=None) -> list[str]:
    """Crea las tablas que falten. Devuelve los nombres de tablas conocidas."""
    import models  # noqa: F401  registra los modelos en Base.metadata

    Base.metadata.create_all(bind=bind or engine)
    return sorted(Base.metadata.tables.keys())
