import smtplib
import ssl
from collections.abc import Callable
from email.message import EmailMessage
from email.utils import formatdate, make_msgid

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from contact_server.config import EmailSettings
from contact_server.email.email import EmailProvider, NotificationMessage, DeliveryResult, NotificationError, \
    NotificationDispatcher
from contact_server.utils.my_logger import init_logger

provider_logger = init_logger("email-providers")


class SendGridProvider(EmailProvider):
    """
        Primary provider, the hosted SendGrid API, the client is built once and injected
    """
    name = "SendGrid"

    def __init__(self, client: SendGridAPIClient, sender: str):
        self.client = client
        self.sender = sender

    def create_mail(self, message: NotificationMessage) -> Mail:
        return Mail(
            from_email=self.sender,
            to_emails=message.recipient,
            subject=message.subject,
            plain_text_content=message.text,
            html_content=message.html)

    def send(self, message: NotificationMessage) -> DeliveryResult:
        try:
            response = self.client.send(self.create_mail(message))
        except Exception as e:
            # the client raises for 4xx/5xx responses as well as for transport failures
            raise NotificationError(provider=self.name, message=f"SendGrid API error: {e}") from e

        if not 200 <= response.status_code < 300:
            raise NotificationError(provider=self.name,
                                    message=f"SendGrid responded with status code {response.status_code}")

        return DeliveryResult(provider=self.name, message_id=response.headers.get('X-Message-Id'))


class SMTPProvider(EmailProvider):
    """
        Secondary provider, a direct SMTP relay, a fresh connection is opened for every send
        and verified with EHLO and LOGIN before anything is sent
    """
    name = "SMTP"

    def __init__(self, host: str, port: int, user: str, password: str, sender: str, secure: bool = False,
                 timeout: float = 30.0, connection_factory: Callable[[], smtplib.SMTP] | None = None):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.secure = secure
        self.timeout = timeout
        self._connection_factory = connection_factory

    def connect(self) -> smtplib.SMTP:
        """connection, greeting and every socket operation are bounded by the same timeout"""
        if self._connection_factory is not None:
            return self._connection_factory()
        if self.secure:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout,
                                    context=ssl.create_default_context())
        return smtplib.SMTP(self.host, self.port, timeout=self.timeout)

    def verify(self, server: smtplib.SMTP) -> None:
        try:
            server.ehlo()
            if not self.secure and server.has_extn('starttls'):
                server.starttls(context=ssl.create_default_context())
                server.ehlo()
            server.login(self.user, self.password)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(provider=self.name, message=f"SMTP verification failed: {e}") from e
        provider_logger.info("SMTP connection verified")

    def create_email(self, message: NotificationMessage) -> EmailMessage:
        email = EmailMessage()
        email['From'] = self.sender
        email['To'] = message.recipient
        email['Subject'] = message.subject
        email['Date'] = formatdate(localtime=True)
        email['Message-ID'] = make_msgid()
        email.set_content(message.text)
        email.add_alternative(message.html, subtype='html')
        return email

    def send(self, message: NotificationMessage) -> DeliveryResult:
        try:
            email = self.create_email(message)
        except ValueError as e:
            raise NotificationError(provider=self.name, message=f"SMTP message could not be built: {e}") from e

        try:
            with self.connect() as server:
                self.verify(server)
                server.send_message(email)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(provider=self.name, message=f"SMTP delivery failed: {e}") from e

        return DeliveryResult(provider=self.name, message_id=email['Message-ID'])


def build_dispatcher(email_settings: EmailSettings, sendgrid_client: SendGridAPIClient | None = None,
                     smtp_connection_factory: Callable[[], smtplib.SMTP] | None = None) -> NotificationDispatcher:
    """
        **build_dispatcher**
            orders the providers, SendGrid first then SMTP, unconfigured providers are left out
    :param email_settings:
    :param sendgrid_client: substitute client, built from the api key when None
    :param smtp_connection_factory: substitute connection factory, smtplib is used when None
    :return: NotificationDispatcher
    """
    providers: list[EmailProvider] = []

    if email_settings.sendgrid_configured:
        client = sendgrid_client or SendGridAPIClient(email_settings.SENDGRID_API_KEY)
        providers.append(SendGridProvider(client=client, sender=email_settings.SENDGRID_FROM))

    if email_settings.smtp_configured:
        providers.append(SMTPProvider(host=email_settings.SMTP_HOST,
                                      port=email_settings.SMTP_PORT,
                                      user=email_settings.SMTP_USER,
                                      password=email_settings.SMTP_PASS,
                                      sender=email_settings.smtp_sender,
                                      secure=email_settings.SMTP_SECURE,
                                      timeout=email_settings.SMTP_TIMEOUT,
                                      connection_factory=smtp_connection_factory))

    provider_logger.info(f"Email configuration check: {email_settings.configured_flags()}")
    return NotificationDispatcher(providers=providers, recipient=email_settings.SEND_TO)
