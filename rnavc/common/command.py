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

import os
import signal
import subprocess
from pathlib import Path
from typing import IO, Callable, Dict, Iterable, List, Tuple, Union

from rnavc.common import fileutils
from rnavc.common.procs import RegisteredPopen, quote_args
from rnavc.common.utilities import safe_coerce_to_tuple, unique


class CmdError(RuntimeError):
    """Exception raised for Command specific errors."""

    def __init__(self, msg: object) -> None:
        RuntimeError.__init__(self, msg)


class _CommandFile:
    def __init__(self, path: fileutils.PathTypes) -> None:
        self.path = fileutils.fspath(path)

        if not isinstance(self.path, str):
            raise TypeError(f"invalid path {path!r}")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, _CommandFile):
            return type(self) is type(other) and self.path == other.path

        return NotImplemented

    def __hash__(self) -> int:
        return hash((type(self), self.path))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.path!r})"


class InputFile(_CommandFile):
    pass


class OutputFile(_CommandFile):
    pass


class AuxiliaryFile(_CommandFile):
    """A file that the command reads, but which is not produced by the pipeline,
    for example the reference sequence or the known-sites VCF."""


CommandFileTypes = Union[InputFile, OutputFile, AuxiliaryFile]
OptionValueType = Union[str, int, float, CommandFileTypes, None]
OptionsType = Dict[
    str,
    Union[
        OptionValueType,
        List[OptionValueType],
        Tuple[OptionValueType, ...],
    ],
]

ReturnCode = Union[int, str, None]


class Command:
    """An external invocation represented as a program and an ordered list of
    arguments. No shell is involved, so sample names or paths containing spaces
    or other special characters are passed to the program as is.

    Files are specified using the InputFile, OutputFile, and AuxiliaryFile classes,
    which allows the files read and written by a command to be tracked:

        cmd = Command(["gatk", "IndexFeatureFile", "-I", InputFile("/path/sample.vcf")])
        cmd.add_extra_files([OutputFile("/path/sample.vcf.idx")])
    """

    _command: list[str | CommandFileTypes]
    _proc: RegisteredPopen | None

    def __init__(
        self,
        command: Iterable[str | int | Path | CommandFileTypes],
        *,
        extra_files: Iterable[CommandFileTypes] = (),
    ) -> None:
        self._command = []
        self._proc = None
        self._files: list[CommandFileTypes] = []

        self.append(*safe_coerce_to_tuple(command))
        if not self._command or not self._command[0]:
            raise ValueError("Empty command in Command constructor")
        elif not isinstance(self._command[0], str):
            raise TypeError(f"executable must be str, not {self._command[0]!r}")

        self.add_extra_files(extra_files)

    def append(self, *args: str | int | float | Path | CommandFileTypes) -> None:
        if self._proc is not None:
            raise CmdError("cannot modify already started command")

        for value in args:
            if isinstance(value, _CommandFile):
                self._files.append(value)
            elif isinstance(value, os.PathLike):
                value = fileutils.fspath(value)
            elif isinstance(value, (str, int, float)):
                value = str(value)
            else:
                raise TypeError(value)

            self._command.append(value)

    def add_extra_files(self, files: Iterable[CommandFileTypes]) -> None:
        """Records files used by the command that are not explicitly part of the
        command-line, e.g. index files written next to an output file."""
        if self._proc is not None:
            raise CmdError("cannot modify already started command")

        for value in files:
            if not isinstance(value, _CommandFile):
                raise TypeError(value)

            self._files.append(value)

    def append_options(
        self,
        options: OptionsType,
        pred: Callable[[str], bool] = lambda s: s.startswith("-"),
    ) -> None:
        if not isinstance(options, dict):
            raise TypeError(f"options must be dict, not {options!r}")

        for key, values in options.items():
            if not isinstance(key, str):
                raise TypeError(f"keys must be strings, not {key!r}")
            elif not pred(key):
                continue

            if isinstance(values, (list, tuple)):
                for value in values:
                    if not isinstance(value, (int, str, float, _CommandFile)):
                        raise TypeError(value)

                    self.append(key)
                    self.append(value)
            elif values is None:
                self.append(key)
            elif isinstance(values, (int, str, float, _CommandFile)):
                self.append(key)
                self.append(values)
            else:
                raise TypeError(values)

    @property
    def executable(self) -> str:
        return str(self._command[0])

    @property
    def input_files(self) -> tuple[str, ...]:
        return self._paths(InputFile)

    @property
    def output_files(self) -> tuple[str, ...]:
        return self._paths(OutputFile)

    @property
    def auxiliary_files(self) -> tuple[str, ...]:
        return self._paths(AuxiliaryFile)

    def to_call(self) -> list[str]:
        return [
            value.path if isinstance(value, _CommandFile) else value
            for value in self._command
        ]

    def run(
        self,
        stdout: None | int | IO[bytes] = None,
        stderr: None | int | IO[bytes] = None,
    ) -> None:
        """Starts the command; the output of the program is written to the (open)
        'stdout' and 'stderr' handles, if any. Use 'join' to wait for the result."""
        if self._proc is not None:
            raise CmdError("Calling 'run' on already running command.")

        try:
            self._proc = RegisteredPopen(
                self.to_call(),
                stdin=subprocess.DEVNULL,
                stdout=stdout,
                stderr=stderr,
            )
        except (OSError, ValueError) as error:
            message = "Error running command:\n  Call = {}\n  Error = {!r}"
            raise CmdError(message.format(self, error)) from error

    def join(self) -> ReturnCode:
        """Waits for the command to terminate and returns the exit code. Commands
        killed by a signal return the name of that signal (e.g. 'SIGKILL')."""
        if self._proc is None:
            return None

        proc, self._proc = self._proc, None
        return_code = proc.wait()

        if return_code < 0:
            return signal.Signals(-return_code).name
        return return_code

    def _paths(self, cls: type[_CommandFile]) -> tuple[str, ...]:
        return tuple(unique(it.path for it in self._files if type(it) is cls))

    def __str__(self) -> str:
        return quote_args(self.to_call())

    def __repr__(self) -> str:
        return f"Command({self.to_call()!r})"
