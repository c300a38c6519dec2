from datetime import datetime, timezone
from sqlalchemy import create_engine, event, String, DateTime
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """
    DateTime column that always stores UTC and always reads back an aware UTC datetime.

    SQLite has no timezone support, so the offset is normalized on the way in
    and reattached on the way out.
    """
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class NamedEnum(TypeDecorator):
    """
    Persist an enum member as its string value.

    Unrecognized stored strings read back as ``fallback`` instead of raising,
    so a row written by a newer version never breaks a read.
    """
    impl = String(32)
    cache_ok = True

    def __init__(self, enum_cls, fallback, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.enum_cls = enum_cls
        self.fallback = fallback

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, self.enum_cls):
            return value.value
        return self.enum_cls(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        try:
            return self.enum_cls(value)
        except ValueError:
            return self.fallback


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given database URL.

    Args:
        database_url: SQLAlchemy database URL
        echo: Whether to echo SQL statements

    Returns:
        SQLAlchemy engine
    """
    # The store is shared between Flask request threads
    connect_args = {}
    if database_url.startswith('sqlite'):
        connect_args['check_same_thread'] = False

    engine = create_engine(database_url, echo=echo, connect_args=connect_args)

    if engine.dialect.name == 'sqlite':
        # Group deletion relies on ON DELETE CASCADE, which SQLite only honours with this pragma
        @event.listens_for(engine, 'connect')
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA foreign_keys=ON')
            cursor.close()

    return engine


def init_db(database_url: str, echo: bool = False, reset: bool = False):
    """
    Initialize database tables.

    Args:
        database_url: SQLAlchemy database URL
        echo: Whether to echo SQL statements
        reset: Drop every table first, discarding all stored data
    """
    engine = create_db_engine(database_url, echo=echo)
    if reset:
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    engine.dispose()
