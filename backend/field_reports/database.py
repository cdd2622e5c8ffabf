from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from field_reports.config import settings


def build_engine(url: str, echo: bool = False):
    """
    Creates the SQLAlchemy engine

    SQLite needs check_same_thread disabled (sessions are used from the
    request threads) and a busy timeout so concurrent writers queue on the
    database lock instead of failing immediately.
    """
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}

    return create_engine(
        url,
        pool_pre_ping=True,  # Checks connections before use
        echo=echo,
        connect_args=connect_args,
    )


# SQLAlchemy engine
engine = build_engine(
    settings.DATABASE_URL,
    echo=settings.ENVIRONMENT == "development" and settings.LOG_LEVEL == "DEBUG"  # SQL log in dev
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base for the models
Base = declarative_base()


def get_db():
    """
    Dependency that yields a database session
    Used with FastAPI Depends
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
