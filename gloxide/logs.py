"""Application logging: console output, optional background writer and a backtrace buffer."""

from __future__ import annotations

import logging
import queue
import sys
import traceback
from collections import deque
from contextlib import suppress
from dataclasses import dataclass, field
from enum import Enum
from logging.handlers import QueueHandler, QueueListener
from types import TracebackType
from typing import TextIO

LOGGER_NAME = "gloxide"
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_LEVEL_NAMES = {
    TRACE: "trace",
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "critical",
}
_PATTERN = "[%(asctime)s.%(msecs)03d] [%(short_level)s] [%(filename)s:%(lineno)d %(funcName)s] %(message)s"


class Backend(Enum):
    CONSOLE = "console"
    NOOP = "noop"


@dataclass
class LoggingConfig:
    """Logging setup; output goes to stream, or standard output when it is None.

    With asynchronous output a single background thread writes the records;
    when non_blocking, a full queue drops its oldest record instead of waiting.
    """

    backend: Backend = Backend.CONSOLE
    asynchronous: bool = True
    non_blocking: bool = True
    queue_size: int = 8192
    worker_threads: int = 1
    backtrace_messages: int = 64
    level: int = logging.DEBUG
    stream: TextIO | None = None


class _Formatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(_PATTERN, datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        record.short_level = _LEVEL_NAMES.get(record.levelno, record.levelname.lower())
        return super().format(record)


class _DroppingQueueHandler(QueueHandler):
    def enqueue(self, record: logging.LogRecord) -> None:
        while True:
            try:
                self.queue.put_nowait(record)
                return
            except queue.Full:
                with suppress(queue.Empty):
                    self.queue.get_nowait()


class _BlockingQueueHandler(QueueHandler):
    def enqueue(self, record: logging.LogRecord) -> None:
        self.queue.put(record)


class _Listener(QueueListener):
    def enqueue_sentinel(self) -> None:
        self.queue.put(self._sentinel)


class _BacktraceHandler(logging.Handler):
    """Keeps the most recent records of every level."""

    def __init__(self, capacity: int) -> None:
        super().__init__(level=logging.NOTSET)
        self._records: deque[logging.LogRecord] = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        snapshot = logging.makeLogRecord(record.__dict__)
        snapshot.msg = record.getMessage()
        snapshot.args = None
        self._records.append(snapshot)

    def drain(self) -> list[logging.LogRecord]:
        records = list(self._records)
        self._records.clear()
        return records


@dataclass
class _LoggingState:
    backend: Backend = Backend.CONSOLE
    initialized: bool = False
    console: logging.Handler | None = None
    output: logging.Handler | None = None
    attached: list[logging.Handler] = field(default_factory=list)
    listener: QueueListener | None = None
    backtrace: _BacktraceHandler | None = None


_state = _LoggingState()


def _validate(config: LoggingConfig) -> None:
    if config.queue_size <= 0:
        raise ValueError(f"queue size must be positive: {config.queue_size}")
    if config.worker_threads <= 0:
        raise ValueError(f"worker thread count must be positive: {config.worker_threads}")
    if config.backtrace_messages < 0:
        raise ValueError(f"backtrace size must not be negative: {config.backtrace_messages}")


def init(config: LoggingConfig | None = None) -> None:
    """(Re)configure logging, replacing any earlier setup."""
    config = config if config is not None else LoggingConfig()
    _validate(config)
    shutdown()
    _state.backend = config.backend

    if config.backend is Backend.NOOP:
        _state.initialized = True
        return

    console = logging.StreamHandler(config.stream if config.stream is not None else sys.stdout)
    console.setFormatter(_Formatter())

    listener = None
    output: logging.Handler = console
    if config.asynchronous:
        records: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=config.queue_size)
        output = _DroppingQueueHandler(records) if config.non_blocking else _BlockingQueueHandler(records)
        listener = _Listener(records, console)
        listener.start()
    output.setLevel(config.level)

    logger = logging.getLogger(LOGGER_NAME)
    attached = [output]
    backtrace = None
    if config.backtrace_messages > 0:
        backtrace = _BacktraceHandler(config.backtrace_messages)
        attached.append(backtrace)
        logger.setLevel(1)
    else:
        logger.setLevel(config.level)
    for handler in attached:
        logger.addHandler(handler)
    logger.propagate = False

    _state.console = console
    _state.output = output
    _state.attached = attached
    _state.listener = listener
    _state.backtrace = backtrace
    _state.initialized = True

    install_excepthook()
    log(logging.INFO, "Logger initialized (backend: console)")


def shutdown() -> None:
    """Flush and detach all output; logging is off until the next init."""
    if not _state.initialized:
        return

    if _state.backend is Backend.CONSOLE:
        log(logging.INFO, "Logger shutdown")

    if _state.listener is not None:
        _state.listener.stop()

    logger = logging.getLogger(LOGGER_NAME)
    for handler in _state.attached:
        logger.removeHandler(handler)
        handler.close()
    if _state.console is not None:
        _state.console.flush()
        _state.console.close()
    if _state.attached:
        logger.setLevel(logging.NOTSET)
        logger.propagate = True

    _state.console = None
    _state.output = None
    _state.attached = []
    _state.listener = None
    _state.backtrace = None
    _state.initialized = False


def _handle_uncaught(
    exc_type: type[BaseException] | None,
    exc: BaseException | None,
    tb: TracebackType | None,
) -> None:
    if exc_type is None:
        log(logging.CRITICAL, "Program terminated without active exception")
        trace = "".join(traceback.format_stack())
    else:
        if isinstance(exc, Exception):
            log(logging.CRITICAL, f"Unhandled exception: {exc}")
        else:
            log(logging.CRITICAL, "Unhandled non-standard exception")
        trace = "".join(traceback.format_exception(exc_type, exc, tb))

    log(logging.CRITICAL, "Stacktrace:")
    log(logging.CRITICAL, trace.rstrip())
    dump_backtrace()
    shutdown()


def install_excepthook() -> None:
    """Log uncaught exceptions with their stack trace and the backtrace buffer."""
    if sys.excepthook is _handle_uncaught:
        return
    sys.excepthook = _handle_uncaught


def _banner(text: str) -> logging.LogRecord:
    return logging.makeLogRecord(
        {"name": LOGGER_NAME, "levelno": logging.INFO, "levelname": "INFO", "msg": text}
    )


def dump_backtrace() -> None:
    """Write out, and then forget, the buffered recent records of every level."""
    if not _state.initialized or _state.backend is Backend.NOOP:
        return
    if _state.backtrace is None or _state.output is None:
        return
    records = _state.backtrace.drain()
    if not records:
        return
    _state.output.handle(_banner("****************** Backtrace Start ******************"))
    for record in records:
        _state.output.handle(record)
    _state.output.handle(_banner("****************** Backtrace End ********************"))


def log(level: int, message: str) -> None:
    """Log a message attributed to the caller; does nothing before init."""
    if not _state.initialized or _state.backend is Backend.NOOP:
        return
    logging.getLogger(LOGGER_NAME).log(level, "%s", message, stacklevel=2)