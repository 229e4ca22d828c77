import logging
from typing import Optional

from .config import get_settings


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging for the orchestrator.

    Args:
        level: Level name; defaults to the LOG_LEVEL setting
    """
    level_name = level or get_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
