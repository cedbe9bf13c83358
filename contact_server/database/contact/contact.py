from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text, func, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from contact_server.const import NAME_LEN, EMAIL_LEN, PHONE_LEN, COMPANY_LEN, PURPOSE_LEN, CONTACTS_TABLE
from contact_server.database.database_sessions import Base, session_factory
from contact_server.models.contact import Submission
from contact_server.utils.my_logger import init_logger

store_logger = init_logger("contact-store")


class PersistenceError(Exception):
    """Raised when a contact could not be written, the store is unreachable or the table is missing"""

    def __init__(self, message: str):
        super().__init__(message)
        self.status_code = 500
        self.message = message


class Contacts(Base):
    """
        ORM Model for Contacts, rows are only ever inserted, never updated or deleted
    """
    __tablename__ = CONTACTS_TABLE
    # fetch id and created_at back in the same round trip as the insert
    __mapper_args__ = {'eager_defaults': True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(NAME_LEN), nullable=False)
    email = Column(String(EMAIL_LEN), nullable=False)
    message = Column(Text, nullable=False)
    phone = Column(String(PHONE_LEN), nullable=True)
    company = Column(String(COMPANY_LEN), nullable=True)
    purpose = Column(String(PURPOSE_LEN), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    @classmethod
    def create_if_not_exists(cls, engine: Engine):
        if not inspect(engine).has_table(cls.__tablename__):
            Base.metadata.create_all(bind=engine, tables=[cls.__table__], checkfirst=True)


@dataclass(frozen=True)
class ProbeResult:
    ok: bool
    table_exists: bool = False
    error: str | None = None


class ContactStore:
    """
        Owns all access to the contacts table, the engine it is built with owns the connection pool
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._sessions = session_factory(engine)

    def insert(self, submission: Submission) -> tuple[int, datetime]:
        """
            **insert**
                writes one contact row with bound parameters, optional fields are passed as explicit None
        :param submission: validated submission
        :return: the assigned id and created_at timestamp
        """
        contact = Contacts(name=submission.name,
                           email=submission.email,
                           message=submission.message,
                           phone=submission.phone,
                           company=submission.company,
                           purpose=submission.purpose)
        try:
            with self._sessions() as session:
                session.add(contact)
                session.commit()
        except SQLAlchemyError as e:
            store_logger.error(f"Failed to insert contact: {e}")
            raise PersistenceError(message=str(e)) from e

        return contact.id, contact.created_at

    def get(self, contact_id: int) -> Contacts | None:
        with self._sessions() as session:
            return session.get(Contacts, contact_id)

    def probe(self) -> ProbeResult:
        """
            reachability and table presence, failures are reported in the result and never raised
        :return: ProbeResult
        """
        try:
            with self.engine.connect() as connection:
                connection.execute(text('SELECT 1'))
                table_exists = inspect(connection).has_table(Contacts.__tablename__)
        except Exception as e:
            store_logger.error(f"Database health check failed: {e}")
            return ProbeResult(ok=False, error=str(e))

        return ProbeResult(ok=True, table_exists=table_exists)
