from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from config import settings

connect_args = {"check_same_thread": False} if settings.DB_URL.startswith("sqlite") else {}

db_engine = create_engine(
    settings.DB_URL,
    connect_args=connect_args,
    echo=False
)

LocalSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

Base = declarative_base()

def obtain_db_session():
    dbSession = LocalSession()
    try:
        yield dbSession
    finally:
        dbSession.close()

def init_db(engine=None):
    """Create any missing tables on the given engine."""
    import models  # noqa: F401  registers the mapped tables on Base
    Base.metadata.create_all(bind=engine or db_engine)
