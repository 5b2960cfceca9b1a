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

import atexit
import logging
import os
import shlex
from subprocess import Popen
from typing import IO, TYPE_CHECKING, Iterable, Sequence

PopenBase = Popen[bytes] if TYPE_CHECKING else Popen

# Tools started by a stage that have not yet been waited on
_RUNNING_PROCS: list[Popen[bytes]] = []


def quote_args(args: Iterable[object]) -> str:
    """Formats a command line so that it can be pasted into a shell."""
    return " ".join(shlex.quote(_to_str(value)) for value in args)


def _to_str(value: object) -> str:
    if isinstance(value, (str, bytes, os.PathLike)):
        return os.fsdecode(value)

    return str(value)


class RegisteredPopen(PopenBase):
    """Popen that is terminated if the interpreter exits while it is running."""

    def __init__(
        self,
        args: Sequence[str],
        *,
        stdin: None | int | IO[bytes] = None,
        stdout: None | int | IO[bytes] = None,
        stderr: None | int | IO[bytes] = None,
    ) -> None:
        super().__init__(
            args=args,
            stdin=stdin,
            stdout=stdout,
            stderr=stderr,
            close_fds=True,
        )

        _RUNNING_PROCS.append(self)

    def wait(self, timeout: float | None = None) -> int:
        return_code = super().wait(timeout)
        # May already have been removed by `terminate_all_processes`
        if self in _RUNNING_PROCS:
            _RUNNING_PROCS.remove(self)

        return return_code


def running_processes() -> list[Popen[bytes]]:
    return list(_RUNNING_PROCS)


@atexit.register
def terminate_all_processes() -> None:
    """Terminates tools left running when rnavc exits, e.g. after Ctrl+C, so that
    they do not keep writing to the output folder of an aborted run."""
    log = logging.getLogger(__name__)
    while _RUNNING_PROCS:
        proc = _RUNNING_PROCS.pop()
        if proc.poll() is None:
            log.warning("Terminating %s (pid %s)", quote_args(proc.args[:1]), proc.pid)
            proc.terminate()
