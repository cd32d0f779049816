from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from comply.config.settings import AppConfig

DATABASE_URL = AppConfig.DATABASE["url"]


def build_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # Sessions are handed across the API threadpool and the scheduler thread
        connect_args["check_same_thread"] = False
    elif url.startswith("postgres") and AppConfig.DATABASE["sslmode"]:
        # If you're using PostgreSQL on Render or similar, set DATABASE_SSLMODE=require
        connect_args["sslmode"] = AppConfig.DATABASE["sslmode"]
    engine = create_engine(url, connect_args=connect_args)

    if url.startswith("sqlite"):
        # SQLite ignores ON DELETE CASCADE unless foreign keys are enabled per connection
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# Required wherever a request-scoped DB session is needed
def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
