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

import logging
from pathlib import Path

import pytest
from humanfriendly.terminal import ansi_wrap

import rnavc.common.logging
from rnavc.common.argparse import ArgumentParser
from rnavc.common.logging import Status, StatusFormatter


class _Fixed(Status):
    def __init__(self, value: str) -> None:
        super().__init__()
        self._value = value

    def __str__(self) -> str:
        return self._value


def _formatter(color: bool = False) -> StatusFormatter:
    return StatusFormatter(
        "%(levelname)s %(status)s%(message)s",
        color=color,
        level_styles={},
        field_styles={},
    )


def _record(
    msg: str,
    *args: object,
    status: Status | None = None,
) -> logging.LogRecord:
    record = logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)
    if status is not None:
        record.status = status

    return record


def test_status_formatter__simple_message() -> None:
    assert _formatter().format(_record("foo %s", "bar")) == "INFO foo bar"


def test_status_formatter__multi_line_message() -> None:
    record = _record("line 1\nline %i", 2)

    assert _formatter().format(record) == "INFO line 1\nINFO line 2"


def test_status_formatter__status() -> None:
    record = _record("Started stage", status=_Fixed("1/7"))

    assert _formatter().format(record) == "INFO [1/7] Started stage"


def test_status_formatter__non_status_values_are_ignored() -> None:
    record = _record("message")
    record.status = "1/7"

    assert _formatter().format(record) == "INFO message"


def test_status_formatter__colored_status() -> None:
    status = _Fixed("1/7")
    status.color = "green"

    record = _record("Started stage", status=status)
    colored = ansi_wrap("1/7", color="green")

    assert colored != "1/7"
    assert _formatter(color=True).format(record) == f"INFO [{colored}] Started stage"
    assert _formatter(color=False).format(record) == "INFO [1/7] Started stage"


def test_add_argument_group() -> None:
    parser = ArgumentParser(prog="test")
    rnavc.common.logging.add_argument_group(parser)

    args = parser.parse_args([])
    assert args.log_file is None
    assert args.log_level == "info"

    args = parser.parse_args(["--log-level", "DEBUG", "--log-file", "run.log"])
    assert args.log_file == "run.log"
    assert args.log_level == "debug"


def test_add_argument_group__invalid_level() -> None:
    parser = ArgumentParser(prog="test")
    rnavc.common.logging.add_argument_group(parser)

    with pytest.raises(SystemExit):
        parser.parse_args(["--log-level", "verbose"])


def test_initialize__log_file(tmp_path: Path) -> None:
    log_file = tmp_path / "run.log"
    rnavc.common.logging.initialize("info", str(log_file))
    logging.getLogger("rnavc.test").info("Hello from test")

    assert "Hello from test" in log_file.read_text()
    assert "\x1b" not in log_file.read_text()
