import sqlalchemy as sa
from sqlalchemy.orm import sessionmaker, declarative_base

from blogapi.config import DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

db = sa.create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(bind=db, autocommit=False, autoflush=False, expire_on_commit=False)

Base = declarative_base()

def get_db():
    database = SessionLocal()
    try:
        yield database
    finally:
        database.close()
