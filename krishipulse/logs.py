# krishipulse/logs.py
import logging

from krishipulse.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the service (idempotent)."""
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)

def mask_phone(phone: str | None) -> str:
    if not phone:
        return "-"
    return phone[:8] + "***"
