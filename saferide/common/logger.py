# saferide/common/logger.py
"""
Структурированное логирование.
JSON или цветной текстовый формат, опциональная запись в файл с ротацией по размеру.
"""

from __future__ import annotations

import inspect
import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from saferide.common.constants import TypeMsg


DEFAULT_LOGGER = "saferide"

# Общие файловые хендлеры (один на процесс)
_FILE_HANDLER: logging.Handler | None = None
_ERROR_HANDLER: logging.Handler | None = None

_LOGGING_INITIALIZED: bool = False

_loggers: dict[str, logging.Logger] = {}


# =============================================================================
# ФОРМАТТЕРЫ
# =============================================================================

class JsonFormatter(logging.Formatter):
    """Форматтер для JSON логов."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "extra_data"):
            log_data["extra"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Цветной форматтер для консоли."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    GRAY = "\033[90m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.GRAY)
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        caller = ""
        extra = getattr(record, "extra_data", None) or {}
        if extra.get("caller_function"):
            caller = (
                f" {self.GRAY}[{extra.get('caller_module')}.{extra['caller_function']}()"
                f":{extra.get('caller_line')}]{self.RESET}"
            )

        message = f"{timestamp} {color}[{record.levelname}]{self.RESET}{caller} {record.getMessage()}"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


class TimestampRotatingFileHandler(RotatingFileHandler):
    """
    Пишет в фиксированный файл <name>.log.
    При превышении размера переименовывает его в <name>_<дата-время>.log и начинает новый.
    """

    def __init__(self, log_dir: str, max_bytes: int, name: str, encoding: str = "utf-8") -> None:
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.name_prefix = name
        super().__init__(
            filename=str(self.log_dir / f"{name}.log"),
            maxBytes=max_bytes,
            backupCount=0,
            encoding=encoding,
        )

    def shouldRollover(self, record: logging.LogRecord) -> bool:
        if self.maxBytes <= 0:
            return False
        if self.stream is None:
            self.stream = self._open()
        self.stream.seek(0, 2)
        return self.stream.tell() >= self.maxBytes

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None

        stamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        archive = self.log_dir / f"{self.name_prefix}_{stamp}.log"
        if os.path.exists(self.baseFilename):
            try:
                os.rename(self.baseFilename, archive)
            except OSError:
                # файл занят другим процессом: продолжаем писать в текущий
                pass

        self.stream = self._open()


# =============================================================================
# ЛОГГЕРЫ
# =============================================================================

def _logging_options() -> dict[str, Any]:
    """Читает параметры логирования из настроек с безопасными значениями по умолчанию."""
    options: dict[str, Any] = {
        "level": "INFO",
        "format": "colored",
        "to_file": False,
        "file_path": "logs/safe_ride.log",
        "max_bytes": 10485760,
    }
    try:
        from saferide.config import settings

        section = settings.logging
        if isinstance(section.LOG_LEVEL, str):
            options["level"] = section.LOG_LEVEL
        if isinstance(section.LOG_FORMAT, str):
            options["format"] = section.LOG_FORMAT
        if isinstance(section.LOG_FILE_PATH, str):
            options["file_path"] = section.LOG_FILE_PATH
        options["to_file"] = section.LOG_TO_FILE is True
        if isinstance(section.LOG_MAX_BYTES, int):
            options["max_bytes"] = section.LOG_MAX_BYTES
    except Exception:
        # Настройки недоступны (например, в тестах без config.json)
        pass
    return options


def _make_formatter(log_format: str) -> logging.Formatter:
    return JsonFormatter() if log_format == "json" else ColoredFormatter()


def get_logger(name: str = DEFAULT_LOGGER) -> logging.Logger:
    """
    Возвращает настроенный логгер.
    Логгеры кэшируются, чтобы хендлеры не добавлялись повторно.

    Args:
        name: Имя логгера
    """
    global _FILE_HANDLER, _ERROR_HANDLER

    if name in _loggers:
        return _loggers[name]

    options = _logging_options()

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, options["level"].upper(), logging.INFO))

    if not logger.handlers:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(_make_formatter(options["format"]))
        logger.addHandler(console)

        if options["to_file"]:
            log_path = Path(options["file_path"])
            if _FILE_HANDLER is None:
                _FILE_HANDLER = TimestampRotatingFileHandler(
                    log_dir=str(log_path.parent),
                    max_bytes=options["max_bytes"],
                    name=log_path.stem,
                )
                _FILE_HANDLER.setFormatter(_make_formatter(options["format"]))
            if _ERROR_HANDLER is None:
                _ERROR_HANDLER = TimestampRotatingFileHandler(
                    log_dir=str(log_path.parent),
                    max_bytes=options["max_bytes"],
                    name="error",
                )
                _ERROR_HANDLER.setLevel(logging.ERROR)
                _ERROR_HANDLER.setFormatter(_make_formatter(options["format"]))
            logger.addHandler(_FILE_HANDLER)
            logger.addHandler(_ERROR_HANDLER)

    logger.propagate = False
    _loggers[name] = logger
    return logger


def setup_logging() -> None:
    """
    Инициализирует логирование при старте приложения.
    Идемпотентна.
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED:
        return
    _LOGGING_INITIALIZED = True

    get_logger(DEFAULT_LOGGER)

    logging.getLogger("asyncpg").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("redis").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# =============================================================================
# ХЕЛПЕРЫ
# =============================================================================

def _get_caller_info() -> dict[str, Any]:
    """
    Информация о коде, вызвавшем хелпер логирования.

    Стек: [0] _get_caller_info, [1] log_* хелпер, [2] вызывающий код.
    log_debug/log_warning вызывают log_info, поэтому пропускаем и их кадры.
    """
    frame = inspect.currentframe()
    try:
        caller = frame.f_back if frame else None
        while caller is not None and caller.f_code.co_name in (
            "log_info", "log_debug", "log_warning", "log_error",
        ):
            caller = caller.f_back
        if caller is None:
            return {}

        module = inspect.getmodule(caller)
        return {
            "caller_function": caller.f_code.co_name,
            "caller_module": module.__name__ if module else "unknown",
            "caller_line": caller.f_lineno,
        }
    except Exception:
        return {}
    finally:
        del frame


async def log_info(
    message: str,
    *,
    type_msg: TypeMsg = TypeMsg.INFO,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
) -> None:
    """
    Асинхронное логирование.

    Args:
        message: Сообщение
        type_msg: Уровень сообщения
        logger_name: Имя логгера
        extra: Дополнительные данные
    """
    logger = get_logger(logger_name)
    record_extra = {"extra_data": {**_get_caller_info(), **(extra or {})}}

    match type_msg:
        case TypeMsg.DEBUG:
            logger.debug(message, extra=record_extra)
        case TypeMsg.WARNING:
            logger.warning(message, extra=record_extra)
        case TypeMsg.ERROR:
            logger.error(message, extra=record_extra)
        case TypeMsg.CRITICAL:
            logger.critical(message, extra=record_extra)
        case _:
            logger.info(message, extra=record_extra)


async def log_debug(
    message: str,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
) -> None:
    """Логирование DEBUG уровня."""
    await log_info(message, type_msg=TypeMsg.DEBUG, logger_name=logger_name, extra=extra)


async def log_warning(
    message: str,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
) -> None:
    """Логирование WARNING уровня."""
    await log_info(message, type_msg=TypeMsg.WARNING, logger_name=logger_name, extra=extra)


async def log_error(
    message: str,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
    exc_info: bool = False,
) -> None:
    """
    Логирование ERROR уровня.

    Args:
        message: Сообщение об ошибке
        logger_name: Имя логгера
        extra: Дополнительные данные
        exc_info: Добавить трейсбек текущего исключения
    """
    logger = get_logger(logger_name)
    record_extra = {"extra_data": {**_get_caller_info(), **(extra or {})}}
    logger.error(message, extra=record_extra, exc_info=exc_info)
