#
# Copyright (c) 2023 Mikkel Schubert <MikkelSch@gmail.com>
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#
from __future__ import annotations

import copy
import logging
import sys
from typing import TYPE_CHECKING, Any

import coloredlogs
from humanfriendly.terminal import ansi_wrap, terminal_supports_colors

if TYPE_CHECKING:
    from rnavc.common.argparse import ArgumentParser


_CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(status)s%(message)s"
_FILE_FORMAT = "%(asctime)s %(name)s %(levelname)s %(status)s%(message)s"


class Status:
    """Prefix for log messages, e.g. the progress of a pipeline; passed to a logger
    as `extra={"status": ...}` and printed in brackets before the message."""

    def __init__(self, color: str | None = None) -> None:
        self.color = color

    def __str__(self) -> str:
        raise NotImplementedError


class StatusFormatter(coloredlogs.ColoredFormatter):
    """Formats each line of a message as a separate record, prefixed with the
    record's Status (if any). Colors are only used if 'color' is set."""

    def __init__(self, fmt: str, *, color: bool = False, **kwargs: Any) -> None:
        if not color:
            kwargs.setdefault("level_styles", {})
            kwargs.setdefault("field_styles", {})

        super().__init__(fmt=fmt, **kwargs)
        self.color = color

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        record = copy.copy(record)
        record.status = self._format_status(getattr(record, "status", None))

        lines = record.getMessage().split("\n")
        record.args = ()

        formatted: list[str] = []
        for line in lines:
            record.msg = line
            formatted.append(super().format(record))

        return "\n".join(formatted)

    def _format_status(self, status: object) -> str:
        if not isinstance(status, Status):
            return ""
        elif self.color and status.color:
            return f"[{ansi_wrap(str(status), color=status.color)}] "

        return f"[{status}] "


def initialize_console_logging(log_level: str = "info") -> None:
    """Logs to STDERR; may be called again to change the log level."""
    root = logging.getLogger()
    root.setLevel(coloredlogs.level_to_number(log_level))

    for handler in root.handlers:
        if isinstance(handler, logging.StreamHandler) and handler.stream is sys.stderr:
            break
    else:
        handler = logging.StreamHandler()
        root.addHandler(handler)

    color = terminal_supports_colors(sys.stderr)
    handler.setFormatter(StatusFormatter(_CONSOLE_FORMAT, color=color))


def initialize(log_level: str = "info", log_file: str | None = None) -> None:
    """Sets up console logging and, optionally, a plain-text log file."""
    initialize_console_logging(log_level)

    if log_file:
        logging.getLogger(__name__).info("Writing %s log to %r", log_level, log_file)

        handler = logging.FileHandler(log_file)
        handler.setFormatter(StatusFormatter(_FILE_FORMAT))
        handler.setLevel(coloredlogs.level_to_number(log_level))

        logging.getLogger().addHandler(handler)


def add_argument_group(parser: ArgumentParser) -> None:
    """Adds the --log-file and --log-level options expected by 'initialize'."""
    group = parser.add_argument_group("Logging")
    group.add_argument(
        "--log-file",
        default=None,
        help="Write log-messages to this file, in addition to the terminal. The "
        "output of the tools run by the pipeline is always written to the per-"
        "sample .log and .err files",
    )
    group.add_argument(
        "--log-level",
        default="info",
        choices=("debug", "info", "warning", "error"),
        type=str.lower,
        help="Log messages at the specified level. This option applies to the "
        "`--log-file` option and to log messages printed to the terminal.",
    )
