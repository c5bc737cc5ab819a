import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


class ContextFormatter(logging.Formatter):
    """Appends keyword context passed to ``Log`` calls as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None)
        if context:
            line += " " + " ".join(f"{key}={value}" for key, value in context.items())
        return line


class Log:
    """Centralized logging for the dashboard and its service wrappers."""

    _logger: logging.Logger = logging.getLogger("agent_hub")
    _QUIET_LOGGERS = ("httpx", "httpcore")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Set the level, attach a stdout handler once, quiet HTTP client chatter."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(ContextFormatter(LOG_FORMAT))
            cls._logger.addHandler(handler)
        for name in cls._QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    @classmethod
    def info(cls, message: str, **context: object) -> None:
        cls._logger.info(message, extra={"context": context})

    @classmethod
    def error(cls, message: str, **context: object) -> None:
        cls._logger.error(message, extra={"context": context})

    @classmethod
    def warning(cls, message: str, **context: object) -> None:
        cls._logger.warning(message, extra={"context": context})

    @classmethod
    def debug(cls, message: str, **context: object) -> None:
        cls._logger.debug(message, extra={"context": context})
