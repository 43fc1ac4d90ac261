# salon/db.py

from sqlmodel import SQLModel, create_engine

from .config import DATABASE_URL

# Engine = connection to the local snapshot database
engine = create_engine(
    DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)


def create_db_and_tables(bind=engine):
    SQLModel.metadata.create_all(bind)
