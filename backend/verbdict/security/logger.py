import logging
from logging.handlers import RotatingFileHandler

from verbdict.core.settings import get_settings

AUTH_LOG_MAX_BYTES = 5 * 1024 * 1024
AUTH_LOG_BACKUPS = 3

# Captcha issues, gate failures, bans and admin logins.
auth_logger = logging.getLogger("auth")
auth_logger.setLevel(logging.INFO)

# The module can be imported more than once under reload; attach one handler.
if not auth_logger.handlers:
    _handler = RotatingFileHandler(
        get_settings().auth_log_file,
        maxBytes=AUTH_LOG_MAX_BYTES,
        backupCount=AUTH_LOG_BACKUPS,
    )
    _handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
    auth_logger.addHandler(_handler)
