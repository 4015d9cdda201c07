from contextvars import ContextVar
from datetime import datetime
import copy
from pytz import timezone
import logging.config
import logging
import os
from logging import Logger


LOGGER_NAME = "chat_assistant"

# chat turn currently handled by this task; "-" outside of a turn
current_turn_id: ContextVar[str] = ContextVar("current_turn_id", default="-")

_ANSI_RESET = "\033[0m"
_COLOR_MAP: dict[str, str] = {
    "cyan":    "\033[36m",
    "green":   "\033[32m",
    "yellow":  "\033[33m",
    "red":     "\033[31m",
    "magenta": "\033[35m",
    "blue":    "\033[34m",
    "white":   "\033[37m",
}


def is_debug_mode() -> bool:
    return os.getenv("LOG_LEVEL", "info").strip().lower() == "debug"


class TurnIdFilter(logging.Filter):
    """Stamps every record with the id of the chat turn being processed."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.turn_id = current_turn_id.get()
        return True


class TimezoneFormatter(logging.Formatter):
    """Formats timestamps in the configured timezone and prefixes warnings and errors."""

    def __init__(self, tz_name: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record):
        # the record is shared by all handlers, only the copy gets the marker
        record = copy.copy(record)
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            message = f"{record.msg} {record.args}"

        if record.levelno >= logging.ERROR:
            marker = "⛔ "
        elif record.levelno == logging.WARNING:
            marker = "⚠️ "
        else:
            marker = ""
        record.msg = marker + message
        # args are already merged into msg
        record.args = ()
        if not hasattr(record, "turn_id"):
            record.turn_id = "-"

        return super().format(record)


class ColoredFormatter(TimezoneFormatter):
    """Console formatter honouring the ``color`` attribute set by :class:`ColorLogger`."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = _COLOR_MAP.get(getattr(record, "color", None) or "", "")
        return f"{ansi}{line}{_ANSI_RESET}" if ansi and line else line


class ColorLogger:
    """Wrapper around :class:`logging.Logger` whose log methods accept ``color=``.

    Usage::

        logger.info("turn answered", color="green")
        logger.warning("query improvement fell back", color="yellow")

    The color only reaches the console; app.log stays plain text.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _log(self, level: int, msg, args, color: str | None, kwargs: dict) -> None:
        if color is not None:
            kwargs = {**kwargs, "extra": {**(kwargs.get("extra") or {}), "color": color}}
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.DEBUG, msg, args, color, kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.INFO, msg, args, color, kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.WARNING, msg, args, color, kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.ERROR, msg, args, color, kwargs)

    def critical(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.CRITICAL, msg, args, color, kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, args, color, kwargs)

    def __getattr__(self, name):
        """Delegate everything else (setLevel, handlers, ...) to the wrapped logger."""
        return getattr(self._logger, name)


def build_logging_config(log_dir: str, tz_name: str, level: int) -> dict:
    """Return the dictConfig for console and file logging.

    Args:
        log_dir (str): Directory that receives app.log.
        tz_name (str): pytz timezone name for timestamps.
        level (int): Level of both handlers and the root logger.
    """
    fmt = "%(asctime)s - %(levelname)s - [turn %(turn_id)s] %(message)s"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "turn_id": {"()": TurnIdFilter},
        },
        "formatters": {
            "standard": {
                "()": TimezoneFormatter,
                "format": fmt,
                "datefmt": "%Y-%m-%d %H:%M:%S",
                "tz_name": tz_name,
            },
            "colored": {
                "()": ColoredFormatter,
                "format": fmt,
                "datefmt": "%Y-%m-%d %H:%M:%S",
                "tz_name": tz_name,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "colored",
                "filters": ["turn_id"],
                "level": level,
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "standard",
                "filters": ["turn_id"],
                "level": level,
                "filename": os.path.join(log_dir, "app.log"),
                "encoding": "utf-8",
            },
        },
        "root": {
            "handlers": ["console", "file"],
            "level": level,
        },
    }


def setup_logging() -> ColorLogger:
    """Configure logging from LOG_LEVEL, TIMEZONE and ROOT_DIR and return the app logger."""
    debug_mode = is_debug_mode()
    level = logging.DEBUG if debug_mode else logging.INFO
    log_dir = os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "logs")
    os.makedirs(log_dir, exist_ok=True)

    logging.config.dictConfig(
        build_logging_config(log_dir, os.getenv("TIMEZONE", "Europe/Berlin"), level)
    )

    # request lines of the embedding / chat backends only in debug mode
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug_mode else logging.WARNING)

    return ColorLogger(logging.getLogger(LOGGER_NAME))
