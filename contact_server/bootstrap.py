from sqlalchemy.engine import Engine

from contact_server.database.contact import Contacts
from contact_server.utils.my_logger import init_logger

bootstrap_logger = init_logger("bootstrap")


def create_tables(engine: Engine) -> bool:
    """
        this will create database tables if they do not already exist, safe to call on every start,
        a database outage at boot is logged and the server keeps running
    :param engine:
    :return: True if the tables are in place
    """
    bootstrap_logger.info("Initializing database table...")
    try:
        Contacts.create_if_not_exists(engine)
    except Exception as e:
        bootstrap_logger.error(f"Database initialization error: {e}", exc_info=True)
        return False

    bootstrap_logger.info("Contacts table created/verified successfully")
    return True
