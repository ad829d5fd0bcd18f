"""Query logging.

Every terminal builder call reports its statement, arguments, duration and
outcome to a :class:`QueryLogger`.  :class:`StandardQueryLogger` routes those
reports through the standard ``logging`` package below the
``querycraft.query`` logger, optionally to the console and to one file per
day.

Loggers with the same output settings share one child logger and its
handlers, so creating many clients never duplicates entries or leaks file
handles.

Example::

    from querycraft.config import LoggerOptions
    from querycraft.log import StandardQueryLogger

    query_logger = StandardQueryLogger(
        LoggerOptions(enabled=True, log_dir="logs/sql", auto_clean_days=14)
    )
"""
from __future__ import annotations

import hashlib
import json
import logging
import sys
import threading
from collections.abc import Sequence
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Protocol

from querycraft.config import LoggerOptions
from querycraft.context import ExecutionContext
from querycraft.schema.values import inline_args

logger = logging.getLogger(__name__)

#: Parent of the loggers query entries are written to.
QUERY_LOGGER_NAME = "querycraft.query"

#: Date pattern of daily log file names.
FILE_DATE_FORMAT = "%Y_%m_%d"

#: Options that decide where and how entries are written.
_SINK_SETTINGS = {"level", "format", "save_to_file", "print_to_console", "log_dir"}


class QueryLogger(Protocol):
    """Receives one call per executed statement.

    Implementations must not raise; logging never changes the outcome of a
    query.
    """

    def log_query(
        self,
        ctx: ExecutionContext,
        sql: str,
        args: Sequence[Any],
        duration: float,
        error: BaseException | None,
    ) -> None:
        """Record one execution.

        Args:
            ctx: Context the statement ran under.
            sql: Statement with neutral ``?`` markers, as built.  The
                dialect's placeholders (``$1`` ...) are applied after this
                text is produced, so entries read the same on every engine
                and arguments can be inlined for display.
            args: Positional arguments, one per marker, as sent.
            duration: Wall-clock seconds spent in the executor.
            error: The exception raised by the executor, if any.
        """
        ...


class NullQueryLogger:
    """Logger that discards every entry."""

    def log_query(
        self,
        ctx: ExecutionContext,
        sql: str,
        args: Sequence[Any],
        duration: float,
        error: BaseException | None,
    ) -> None:
        return None


def _formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return logging.Formatter("%(message)s")
    return logging.Formatter("[%(asctime)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


class _Sink:
    """A child logger and the handlers attached to it.

    Shared by every :class:`StandardQueryLogger` with the same parent name and
    output settings; handlers are closed when the last user closes.
    """

    def __init__(self, target: logging.Logger, options: LoggerOptions) -> None:
        self.logger = target
        self.options = options
        self.lock = threading.Lock()
        self.users = 0
        self.handlers: list[logging.Handler] = []
        self.file_handler: logging.FileHandler | None = None
        self.file_date: date | None = None

    def attach(self, handler: logging.Handler) -> None:
        handler.setFormatter(_formatter(self.options.format))
        self.logger.addHandler(handler)
        self.handlers.append(handler)

    def detach(self, handler: logging.Handler) -> None:
        self.logger.removeHandler(handler)
        self.handlers.remove(handler)
        handler.close()

    def ensure_file_handler(self, path: Path, today: date) -> None:
        if self.file_handler is not None and self.file_date == today:
            return
        if self.file_handler is not None:
            self.detach(self.file_handler)
            self.file_handler = None
        handler = logging.FileHandler(path, encoding="utf-8")
        self.attach(handler)
        self.file_handler = handler
        self.file_date = today

    def close(self) -> None:
        with self.lock:
            for handler in list(self.handlers):
                self.detach(handler)
            self.file_handler = None
            self.file_date = None


_sinks: dict[str, _Sink] = {}
_sinks_lock = threading.Lock()


def _sink_name(parent: str, options: LoggerOptions) -> str:
    settings = options.model_dump(include=_SINK_SETTINGS)
    digest = hashlib.sha1(json.dumps(settings, sort_keys=True).encode("utf-8")).hexdigest()
    return f"{parent}.{digest[:10]}"


def _acquire_sink(parent: str, options: LoggerOptions) -> _Sink:
    name = _sink_name(parent, options)
    with _sinks_lock:
        sink = _sinks.get(name)
        if sink is None:
            target = logging.getLogger(name)
            target.setLevel(options.level)
            sink = _Sink(target, options)
            if options.print_to_console:
                sink.attach(logging.StreamHandler(sys.stdout))
            _sinks[name] = sink
        sink.users += 1
    return sink


def _release_sink(sink: _Sink) -> None:
    with _sinks_lock:
        sink.users -= 1
        if sink.users > 0:
            return
        _sinks.pop(sink.logger.name, None)
    sink.close()


class StandardQueryLogger:
    """Writes query entries through the standard ``logging`` package.

    Entries go to a child of ``name`` that is shared with every other
    instance using the same output settings; they propagate to ``name`` and
    its ancestors as usual.

    Args:
        options: Logging options; defaults to a disabled logger.
        name: Name of the parent logger.
    """

    def __init__(self, options: LoggerOptions | None = None, name: str = QUERY_LOGGER_NAME) -> None:
        self.options = options or LoggerOptions()
        self.name = name
        self._sink: _Sink | None = None

        if not self.options.enabled:
            return

        self._sink = _acquire_sink(name, self.options)
        if self.options.save_to_file and self.options.log_dir:
            Path(self.options.log_dir).mkdir(parents=True, exist_ok=True)
            if self.options.auto_clean_days > 0:
                self.clean_old_logs()

    @property
    def log_dir(self) -> Path:
        return Path(self.options.log_dir)

    @property
    def logger(self) -> logging.Logger | None:
        """The logger entries are written to; ``None`` when disabled or closed."""
        return self._sink.logger if self._sink is not None else None

    def log_file_for(self, day: date) -> Path:
        """Return the path of the log file for ``day``."""
        return self.log_dir / f"{day.strftime(FILE_DATE_FORMAT)}.log"

    def format_entry(
        self,
        sql: str,
        args: Sequence[Any],
        duration: float,
        error: BaseException | None,
    ) -> str:
        """Render one entry in the configured format."""
        query = inline_args(sql, args)
        if self.options.format == "json":
            return json.dumps(
                {
                    "timestamp": datetime.now().isoformat(timespec="milliseconds"),
                    "duration_ms": round(duration * 1000, 3),
                    "query": query,
                    "args": list(args),
                    "error": str(error) if error is not None else None,
                },
                default=str,
            )
        return f"[QUERY] Duration: {duration * 1000:.3f}ms, Query: {query}, Error: {error}"

    def log_query(
        self,
        ctx: ExecutionContext,
        sql: str,
        args: Sequence[Any],
        duration: float,
        error: BaseException | None,
    ) -> None:
        sink = self._sink
        if sink is None:
            return
        entry = self.format_entry(sql, args, duration, error)
        level = logging.ERROR if error is not None else logging.getLevelName(self.options.level)
        with sink.lock:
            if self.options.save_to_file and self.options.log_dir:
                today = date.today()
                try:
                    sink.ensure_file_handler(self.log_file_for(today), today)
                except OSError as exc:
                    logger.warning("Cannot open query log file in %s: %s", self.log_dir, exc)
            sink.logger.log(level, entry)

    def clean_old_logs(self) -> list[Path]:
        """Delete daily log files older than ``auto_clean_days``.

        Files whose name is not a ``YYYY_MM_DD.log`` date are left alone.

        Returns:
            The removed paths.
        """
        cutoff = date.today() - timedelta(days=self.options.auto_clean_days)
        removed: list[Path] = []
        if not self.log_dir.is_dir():
            return removed
        for path in self.log_dir.glob("*.log"):
            try:
                day = datetime.strptime(path.stem, FILE_DATE_FORMAT).date()
            except ValueError:
                continue
            if day < cutoff:
                try:
                    path.unlink()
                except OSError as exc:
                    logger.warning("Cannot remove old query log %s: %s", path, exc)
                    continue
                removed.append(path)
        return removed

    def close(self) -> None:
        """Release the shared handlers; the last user closes them."""
        sink, self._sink = self._sink, None
        if sink is not None:
            _release_sink(sink)
