from contact_server.email.email import NotificationDispatcher, NotificationAttempt, NotificationMessage, \
    NotificationError, DeliveryResult, EmailProvider
from contact_server.email.providers import SendGridProvider, SMTPProvider, build_dispatcher
