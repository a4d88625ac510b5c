from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from clicktrack_app.config import settings


connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a database session and close it after the request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
