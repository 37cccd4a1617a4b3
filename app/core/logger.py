# core/logger.py
import logging
from app.core.config import settings

logger = logging.getLogger("planit")
logger.setLevel(settings.LOG_LEVEL.upper())

# Console handler, attached once even if the module is reloaded
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter("[%(asctime)s] [%(levelname)s] %(message)s"))
    logger.addHandler(console_handler)

# Child loggers such as "planit.errors" print through this handler only
logger.propagate = False
