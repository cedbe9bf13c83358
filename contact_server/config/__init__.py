from contact_server.config.config import config_instance, logging_settings, Settings, DatabaseSettings, \
    EmailSettings, LoggingSettings
