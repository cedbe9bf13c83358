import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone

from contact_server.email.templates import EmailTemplate
from contact_server.models.contact import Submission
from contact_server.utils.my_logger import init_logger

email_logger = init_logger("email-dispatcher")


class NotificationError(Exception):
    """Raised by a provider when it could not deliver, never escapes the dispatcher"""

    def __init__(self, provider: str, message: str):
        super().__init__(message)
        self.provider = provider
        self.message = message


@dataclass(frozen=True)
class NotificationMessage:
    recipient: str
    subject: str
    text: str
    html: str


@dataclass(frozen=True)
class DeliveryResult:
    provider: str
    message_id: str | None = None


@dataclass(frozen=True)
class NotificationAttempt:
    """outcome of one dispatch, lives only as long as the request that produced it"""
    contact_id: int
    delivered: bool
    provider: str | None = None

    def __bool__(self) -> bool:
        return self.delivered


class EmailProvider(ABC):
    """
        A notification channel, send either returns a DeliveryResult or raises NotificationError
    """
    name: str = "provider"

    @abstractmethod
    def send(self, message: NotificationMessage) -> DeliveryResult:
        ...


class NotificationDispatcher:
    """
        Tries each configured provider in order and stops at the first one that delivers,
        notification is advisory so every failure ends up as delivered=False and a log entry
    """

    def __init__(self, providers: list[EmailProvider], recipient: str | None,
                 templates: type[EmailTemplate] = EmailTemplate):
        self.providers = providers
        self.recipient = recipient
        self.templates = templates

    @property
    def is_configured(self) -> bool:
        return bool(self.providers and self.recipient)

    @property
    def provider_names(self) -> list[str]:
        return [provider.name for provider in self.providers]

    async def create_message(self, submission: Submission, contact_id: int,
                             submitted_at: datetime) -> NotificationMessage:
        """Create the message with plain-text and HTML versions."""
        context = dict(name=submission.name, email=submission.email, message=submission.message,
                       phone=submission.phone, company=submission.company, purpose=submission.purpose,
                       submitted=submitted_at.isoformat(sep=' ', timespec='seconds'), contact_id=contact_id)

        return NotificationMessage(
            recipient=self.recipient,
            subject=await self.templates.contact_notification_subject(name=submission.name),
            text=await self.templates.contact_notification_text(**context),
            html=await self.templates.contact_notification_html(**context))

    async def dispatch(self, submission: Submission, contact_id: int,
                       submitted_at: datetime | None = None) -> NotificationAttempt:
        """
            **dispatch**
                one linear pass over the providers, no retries
        :param submission: the saved submission
        :param contact_id: id assigned by the store
        :param submitted_at: server side submission time, defaults to now
        :return: NotificationAttempt
        """
        if not self.is_configured:
            email_logger.warning(f"No email method configured, contact {contact_id} will not be notified")
            return NotificationAttempt(contact_id=contact_id, delivered=False)

        try:
            message = await self.create_message(submission=submission, contact_id=contact_id,
                                                submitted_at=submitted_at or datetime.now(tz=timezone.utc))
        except Exception as e:
            email_logger.error(f"Unable to render notification for contact {contact_id}: {e}")
            return NotificationAttempt(contact_id=contact_id, delivered=False)

        for provider in self.providers:
            email_logger.info(f"Sending notification for contact {contact_id} via {provider.name}")
            try:
                # provider clients block, keep them off the event loop
                result = await asyncio.to_thread(provider.send, message)
            except NotificationError as e:
                email_logger.error(f"{e.provider} failed for contact {contact_id}: {e.message}")
                continue
            except Exception as e:
                email_logger.error(f"{provider.name} raised an unexpected error for contact {contact_id}: {e}")
                continue

            email_logger.info(f"Email sent via {result.provider}: {result.message_id or '(no id)'}")
            return NotificationAttempt(contact_id=contact_id, delivered=True, provider=result.provider)

        email_logger.warning(f"All email methods failed for contact {contact_id}")
        return NotificationAttempt(contact_id=contact_id, delivered=False)
