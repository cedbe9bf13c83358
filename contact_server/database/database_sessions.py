from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from contact_server.config import DatabaseSettings

Base = declarative_base()


def create_db_engine(database_settings: DatabaseSettings) -> Engine:
    """
        the engine owns the connection pool, every store call checks a connection out of it
        and hands it back, nothing else opens connections to the database
    :param database_settings:
    :return:
    """
    url = database_settings.DATABASE_URL
    if url.startswith('sqlite'):
        return create_engine(url, pool_pre_ping=True)

    return create_engine(url,
                         pool_pre_ping=True,
                         pool_size=database_settings.POOL_SIZE,
                         pool_timeout=database_settings.POOL_TIMEOUT)


def session_factory(engine: Engine) -> sessionmaker:
    # records are returned to the caller after commit so attributes must stay loaded
    return sessionmaker(bind=engine, expire_on_commit=False)
