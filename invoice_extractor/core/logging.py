import sys
from loguru import logger
from .config import settings


def setup_logging(level: str | None = None, json_output: bool | None = None):
    """
    Configure the process-wide loguru sink and return the logger.

    Structured context passed as keyword arguments to logger calls
    (``logger.info("...", invoice_id=...)``) lands in ``record["extra"]``
    and is rendered by the JSON sink when ``LOG_JSON`` is enabled.
    """
    level = level or settings.log_level
    json_output = settings.log_json if json_output is None else json_output

    logger.remove()
    if json_output:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(
            sys.stderr,
            level=level,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
                "<level>{message}</level> {extra}"
            ),
        )
    return logger
