from logging.config import dictConfig

from app.core.config import Settings


def init_logging(settings: Settings) -> None:
    """JSON lines in staging/production; plain console otherwise."""
    env = (settings.ENV or "local").lower()
    if env in ("staging", "production"):
        formatter = {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
        }
    else:
        formatter = {"format": "%(asctime)s %(levelname)-7s %(name)s: %(message)s"}

    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "default"}},
        "root": {"level": settings.LOG_LEVEL.upper(), "handlers": ["console"]},
    })
