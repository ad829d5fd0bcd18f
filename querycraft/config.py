"""Configuration models for querycraft.

``QueryCraftOptions`` is passed to :class:`~querycraft.client.QueryCraft`;
``LoggerOptions`` configures the :class:`~querycraft.log.StandardQueryLogger`
built from it.  Both reject unknown keys so typos surface immediately::

    options = QueryCraftOptions.model_validate(
        {"logger": {"enabled": True, "print_to_console": True}}
    )
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["text", "json"]


class LoggerOptions(BaseModel):
    """Query logging options.

    Attributes:
        enabled: Master switch; a disabled logger writes nothing.
        level: Level for successful executions.  Failures always log at ERROR.
        format: ``'text'`` for one readable line per query, ``'json'`` for
            one JSON object per line.
        save_to_file: Append entries to a daily ``YYYY_MM_DD.log`` file.
        print_to_console: Also write entries to standard output.
        log_dir: Directory holding the daily log files.
        auto_clean_days: Remove daily files older than this many days when the
            logger starts; ``0`` keeps every file.
    """

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    level: LogLevel = "INFO"
    format: LogFormat = "text"
    save_to_file: bool = True
    print_to_console: bool = False
    log_dir: str = "./storage/logs/sql/"
    auto_clean_days: int = Field(default=7, ge=0)


class QueryCraftOptions(BaseModel):
    """Client-wide options.

    Attributes:
        logger: Query logging options.
        print_sql: Print every statement (arguments inlined) before it runs.
    """

    model_config = ConfigDict(extra="forbid")

    logger: LoggerOptions = Field(default_factory=LoggerOptions)
    print_sql: bool = False
