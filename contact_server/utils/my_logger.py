import functools
import logging
import os
import sys

from cryptography.fernet import Fernet

from contact_server.config import logging_settings

_log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class EncryptedFormatter(logging.Formatter):
    """
        Encrypts the message part of every log line, submissions carry names, emails and phone numbers
        which should not sit in plain text on disk
    """

    def __init__(self, key: bytes | str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._fernet = Fernet(key)

    def format(self, record: logging.LogRecord) -> str:
        record.asctime = self.formatTime(record, self.datefmt)
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"[{record.asctime}] {record.name} - {record.levelname}: {self.encrypt_log(message)}"

    def encrypt_log(self, log: str) -> str:
        return self._fernet.encrypt(log.encode('utf-8')).decode('utf-8')

    def decrypt_log(self, log: str) -> str:
        return self._fernet.decrypt(log.encode('utf-8')).decode('utf-8')

    def decrypt_formatted_log(self, formatted_log: str) -> str:
        # fernet tokens are urlsafe base64 so the last ": " always precedes the token
        prefix, _, encrypted_message = formatted_log.strip().rpartition(": ")
        return f"{prefix}: {self.decrypt_log(encrypted_message)}"


class AppLogger:
    def __init__(self, name: str, log_level: int | str = logging.INFO, filename: str | None = None,
                 fernet_key: str | None = None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level=log_level)

        if filename:
            log_dir = os.path.dirname(filename)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handler = logging.FileHandler(filename)
        else:
            handler = logging.StreamHandler(sys.stdout)

        formatter = EncryptedFormatter(key=fernet_key) if fernet_key else logging.Formatter(_log_format)
        handler.setFormatter(formatter)
        self.logger.addHandler(handler)


@functools.lru_cache
def init_logger(name: str = "contact-form-server") -> logging.Logger:
    """
        cached per name so that handlers are only attached once
    :param name:
    :return:
    """
    settings = logging_settings()
    logger = AppLogger(name=name, log_level=settings.LOG_LEVEL.upper(), filename=settings.LOG_FILENAME,
                       fernet_key=settings.LOG_FERNET_KEY)
    return logger.logger
