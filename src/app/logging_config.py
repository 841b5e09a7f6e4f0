import logging
import sys
from typing import Optional

from .config import Settings, settings as default_settings


def setup_logging(settings: Optional[Settings] = None):
    settings = settings or default_settings
    logging.basicConfig(
        stream=sys.stdout,
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("twilio.http_client").setLevel(logging.WARNING)


def mask_phone(phone: Optional[str]) -> str:
    """Keep only the last four digits of a phone number for log lines."""
    if not phone:
        return ""
    return f"***{phone[-4:]}"
