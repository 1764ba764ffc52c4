# database.py

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from config import DATABASE_URL

# In-memory SQLite needs a single shared connection so every session sees the tables
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
_use_static_pool = DATABASE_URL.startswith("sqlite") and ":memory:" in DATABASE_URL

# Create the engine to connect to the database
engine = create_engine(
    DATABASE_URL,
    connect_args=_connect_args,
    poolclass=StaticPool if _use_static_pool else None,
    pool_pre_ping=not DATABASE_URL.startswith("sqlite"),
)

# Create a session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for our database models
Base = declarative_base()


def init_db():
    """Create all tables that don't exist yet."""
    import models  # noqa: F401  (registers the tables on Base)

    Base.metadata.create_all(bind=engine)


# Dependency for FastAPI to get a DB session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
