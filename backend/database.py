# backend/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv

from config import settings

load_dotenv()

# 1. Address from settings (env / .env) or the local SQLite default
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# 2. Heroku/Azure style URLs use postgres://, SQLAlchemy requires postgresql://
if SQLALCHEMY_DATABASE_URL and SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)

# 3. Driver specific options, including the last-resort query timeout
engine_kwargs = {}
if "sqlite" in SQLALCHEMY_DATABASE_URL:
    connect_args = {
        "check_same_thread": False,
        "timeout": settings.DB_QUERY_TIMEOUT_MS / 1000,
    }
    # In-memory databases live inside a single connection
    if SQLALCHEMY_DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs["poolclass"] = StaticPool
else:
    connect_args = {"options": f"-c statement_timeout={settings.DB_QUERY_TIMEOUT_MS}"}
    engine_kwargs["pool_pre_ping"] = True

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args=connect_args, **engine_kwargs
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    # Make sure every model is registered on Base.metadata before creating tables
    import models.users  # noqa: F401
    import models.category  # noqa: F401
    import models.furniture  # noqa: F401
    import models.review  # noqa: F401
    import models.cart  # noqa: F401
    import models.order  # noqa: F401

    Base.metadata.create_all(bind=engine)
