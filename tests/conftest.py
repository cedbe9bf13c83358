from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from contact_server.config import Settings, DatabaseSettings, EmailSettings
from contact_server.email import build_dispatcher
from contact_server.main.main import create_app

UNREACHABLE_DATABASE_URL = "sqlite:////nonexistent-directory/contacts.db"


class FakeSendGridClient:
    """stands in for SendGridAPIClient, records every Mail it is asked to send"""

    def __init__(self, status_code: int = 202, error: Exception | None = None):
        self.status_code = status_code
        self.error = error
        self.sent = []

    def send(self, mail):
        if self.error is not None:
            raise self.error
        self.sent.append(mail)
        return SimpleNamespace(status_code=self.status_code, headers={'X-Message-Id': 'sg-message-1'})


class FakeSMTP:
    """stands in for an smtplib.SMTP connection"""

    def __init__(self, outbox: list, login_error: Exception | None = None, starttls: bool = True):
        self.outbox = outbox
        self.login_error = login_error
        self._starttls = starttls
        self.calls = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.closed = True
        self.calls.append('quit')

    def ehlo(self):
        self.calls.append('ehlo')

    def has_extn(self, name):
        return self._starttls and name == 'starttls'

    def starttls(self, context=None):
        self.calls.append('starttls')

    def login(self, user, password):
        self.calls.append('login')
        if self.login_error is not None:
            raise self.login_error

    def send_message(self, message):
        self.calls.append('send_message')
        self.outbox.append(message)
        return {}


def make_email_settings(**overrides) -> EmailSettings:
    values = dict(SENDGRID_API_KEY=None, SENDGRID_FROM="noreply@contact-form.local", SMTP_HOST=None, SMTP_PORT=587,
                  SMTP_SECURE=False, SMTP_USER=None, SMTP_PASS=None, SMTP_FROM=None, SMTP_TIMEOUT=5.0, SEND_TO=None)
    values.update(overrides)
    return EmailSettings(_env_file=None, **values)


SMTP_ONLY = dict(SMTP_HOST="smtp.example.com", SMTP_USER="mailer@example.com", SMTP_PASS="secret",
                 SEND_TO="operator@example.com")
SENDGRID_ONLY = dict(SENDGRID_API_KEY="SG.test-key", SEND_TO="operator@example.com")
BOTH = {**SENDGRID_ONLY, **SMTP_ONLY}


def make_settings(email_settings: EmailSettings | None = None, database_url: str = "sqlite://",
                  environment: str = "development") -> Settings:
    return Settings(_env_file=None,
                    ENVIRONMENT=environment,
                    DATABASE_SETTINGS=DatabaseSettings(_env_file=None, DATABASE_URL=database_url),
                    EMAIL_SETTINGS=email_settings or make_email_settings())


@pytest.fixture()
def engine():
    _engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    yield _engine
    _engine.dispose()


@pytest.fixture()
def unreachable_engine():
    _engine = create_engine(UNREACHABLE_DATABASE_URL)
    yield _engine
    _engine.dispose()


@pytest.fixture()
def smtp_outbox() -> list:
    return []


@pytest.fixture()
def make_client(engine, smtp_outbox):
    """builds a started TestClient around an app wired with fakes"""
    clients = []

    def _make_client(email_settings: EmailSettings | None = None, sendgrid_client=None, smtp_connection_factory=None,
                     app_engine=None, environment: str = "development") -> TestClient:
        email_settings = email_settings or make_email_settings()
        settings = make_settings(email_settings=email_settings, environment=environment)
        factory = smtp_connection_factory or (lambda: FakeSMTP(outbox=smtp_outbox))
        dispatcher = build_dispatcher(email_settings, sendgrid_client=sendgrid_client,
                                      smtp_connection_factory=factory)
        app = create_app(settings=settings, engine=app_engine or engine, dispatcher=dispatcher)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make_client
    for client in clients:
        client.__exit__(None, None, None)
