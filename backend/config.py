import logging
import os
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]
load_dotenv(ROOT_DIR / ".env")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
TIMELINE_LOG_FILE = os.getenv("TIMELINE_LOG_FILE", "").strip()
TIMELINE_LOG_LEVEL = os.getenv("TIMELINE_LOG_LEVEL", "").strip()


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


# Contract checks on resolver input (duplicate ids) and cut maps (ordering).
TIMELINE_DEBUG_ASSERTIONS = _env_flag("TIMELINE_DEBUG_ASSERTIONS")

EDITOR_DEFAULT_FPS = _env_int("EDITOR_DEFAULT_FPS", 30)
EDITOR_DEFAULT_WIDTH = _env_int("EDITOR_DEFAULT_WIDTH", 1080)
EDITOR_DEFAULT_HEIGHT = _env_int("EDITOR_DEFAULT_HEIGHT", 1920)
EDITOR_DEFAULT_DURATION_FRAMES = _env_int("EDITOR_DEFAULT_DURATION_FRAMES", 900)


def _attach_file_handler(
    logger_name: str,
    log_file_path: Path,
    level_name: str | None = None,
) -> None:
    logger_level = (level_name or LOG_LEVEL).upper()
    logger_level_value = getattr(logging, logger_level, logging.INFO)

    log_file_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
    file_handler.setLevel(logger_level_value)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    target_logger = logging.getLogger(logger_name)
    if not any(
        isinstance(handler, logging.FileHandler)
        and getattr(handler, "baseFilename", None) == str(log_file_path)
        for handler in target_logger.handlers
    ):
        target_logger.addHandler(file_handler)
    else:
        file_handler.close()
    target_logger.setLevel(logger_level_value)


def configure_logging(log_file: str | None = None) -> None:
    """
    Set up root logging and, optionally, a file log for the engine loggers.

    Safe to call more than once; a file handler is attached only once per path.
    """
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

    log_file = TIMELINE_LOG_FILE if log_file is None else log_file
    if not log_file:
        return
    log_path = Path(log_file)
    if not log_path.is_absolute():
        log_path = ROOT_DIR / log_path
    for logger_name in ("operators", "models"):
        _attach_file_handler(logger_name, log_path, level_name=TIMELINE_LOG_LEVEL or None)
