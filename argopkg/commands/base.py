from __future__ import annotations
from typing import TYPE_CHECKING

import logging

from cleo.commands.command import Command as BaseCommand
from cleo.formatters.formatter import Formatter

from argopkg import config as argo_config
from argopkg import errors
from argopkg import manager as argo_manager

if TYPE_CHECKING:
    from cleo.io.io import IO


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class CommandHandler(logging.Handler):
    """Render log records onto the command's IO."""

    def __init__(self, io: IO) -> None:
        super().__init__()
        self._io = io

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = Formatter.escape(self.format(record))
            if record.levelno >= logging.ERROR:
                self._io.write_error_line(f"<error>{msg}</error>")
            elif record.levelno >= logging.WARNING:
                self._io.write_error_line(f"<warning>{msg}</warning>")
            elif record.levelno >= logging.INFO:
                self._io.write_line(msg)
            else:
                self._io.write_line(f"<comment>{msg}</comment>")
        except Exception:
            self.handleError(record)


class Command(BaseCommand):

    _loggers = ["argopkg"]
    _manager: argo_manager.PackageManager | None = None
    config: argo_config.Config

    def execute(self, io: IO) -> int:
        try:
            self.config = argo_config.load()
        except errors.ConfigError as e:
            io.write_error_line(f"<error>{e}</error>")
            return 1

        for logger in self._loggers:
            self.register_logger(logging.getLogger(logger), io)

        try:
            return super().execute(io)
        except errors.ArgoError as e:
            self.report(e)
            return 1

    def register_logger(self, logger: logging.Logger, io: IO) -> None:
        for old in logger.handlers:
            old.close()

        handler = CommandHandler(io)
        level = logging.WARNING
        if io.is_debug():
            level = logging.DEBUG
        elif io.is_very_verbose() or io.is_verbose():
            level = logging.INFO
        handler.setLevel(level)

        self.config.var_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(self.config.log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(logging.INFO)

        logger.handlers = [handler, file_handler]
        logger.propagate = False
        logger.setLevel(logging.DEBUG if io.is_debug() else logging.INFO)

    def report(self, error: errors.ArgoError) -> None:
        logger = logging.getLogger(self._loggers[0])
        if error.soft:
            logger.warning("%s: %s", error.kind, error)
        else:
            logger.error("%s: %s", error.kind, error)

    @property
    def manager(self) -> argo_manager.PackageManager:
        if self._manager is None:
            self._manager = argo_manager.PackageManager(
                self.config, io=self.io
            )
        return self._manager
