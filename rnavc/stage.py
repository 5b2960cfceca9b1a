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
from typing import Iterable

from rnavc.common.command import Command
from rnavc.common.fileutils import PathTypes, fspath, missing_files
from rnavc.common.utilities import safe_coerce_to_tuple, unique


class PipelineError(RuntimeError):
    pass


class ArgumentError(PipelineError):
    """Raised for missing or invalid command-line arguments."""


class MissingInputError(PipelineError):
    def __init__(self, stage: str, path: str) -> None:
        super().__init__(f"Missing input file for stage {stage!r}: {path!r}")
        self.stage = stage
        self.path = path


class StageFailedError(PipelineError):
    def __init__(
        self,
        stage: str,
        returncode: int | str | None,
        message: str | None = None,
    ) -> None:
        if message is None:
            message = f"Stage {stage!r} failed with exit code {returncode}"

        super().__init__(message)
        self.stage = stage
        self.returncode = returncode


class CleanupWarning(UserWarning):
    def __init__(self, path: str, error: object) -> None:
        super().__init__(f"Could not remove intermediate file {path!r}: {error}")
        self.path = path


class CompletionCheck:
    """Predicate deciding if a stage has already been completed, based on the
    state of the filesystem."""

    def __call__(self, stage: Stage) -> bool:
        raise NotImplementedError


class OutputsExist(CompletionCheck):
    """A stage is complete if all of its output files exist.

    Note that a partial file left by an interrupted tool is indistinguishable from
    a complete file, and will cause the stage to be skipped."""

    def __call__(self, stage: Stage) -> bool:
        return bool(stage.outputs) and not missing_files(stage.outputs)


class Stage:
    """A single step in a pipeline, consisting of one or more commands that are run
    in order. A stage is described by the files it requires ('inputs'), and the
    files that it produces ('outputs'); by default these are collected from the
    InputFile and OutputFile arguments of the commands, with files produced by one
    command and read by a later command being treated as outputs only.

    'intermediate' lists files that are no longer needed once the pipeline has
    completed, and which are removed by the runner at the end of a run.
    """

    name: str
    description: str
    commands: tuple[Command, ...]
    inputs: tuple[str, ...]
    outputs: tuple[str, ...]
    intermediate: tuple[str, ...]
    completion: CompletionCheck
    skippable: bool

    def __init__(
        self,
        name: str,
        commands: Command | Iterable[Command],
        *,
        inputs: Iterable[PathTypes] | None = None,
        outputs: Iterable[PathTypes] | None = None,
        intermediate: Iterable[PathTypes] = (),
        completion: CompletionCheck | None = None,
        skippable: bool = True,
        description: str | None = None,
    ) -> None:
        if not (name and isinstance(name, str)):
            raise TypeError(f"stage name must be a non-empty string, not {name!r}")

        self.name = name
        self.commands = safe_coerce_to_tuple(commands)
        if not self.commands:
            raise ValueError(f"no commands for stage {name!r}")

        for command in self.commands:
            if not isinstance(command, Command):
                raise TypeError(command)

        if outputs is None:
            outputs = unique(fn for cmd in self.commands for fn in cmd.output_files)

        if inputs is None:
            produced = set(fn for cmd in self.commands for fn in cmd.output_files)
            inputs = unique(
                fn
                for cmd in self.commands
                for fn in cmd.input_files + cmd.auxiliary_files
                if fn not in produced
            )

        self.inputs = self._validate_files(inputs)
        self.outputs = self._validate_files(outputs)
        self.intermediate = self._validate_files(intermediate)
        self.completion = OutputsExist() if completion is None else completion
        self.skippable = bool(skippable)
        self.description = name if description is None else description

    def is_complete(self) -> bool:
        return self.skippable and self.completion(self)

    def missing_inputs(self) -> list[str]:
        return missing_files(self.inputs)

    def __setattr__(self, name: str, value: object) -> None:
        if name in self.__dict__:
            raise AttributeError(f"cannot modify attribute {name!r} of stage")

        super().__setattr__(name, value)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Stage({self.name!r}, outputs={self.outputs!r})"

    @staticmethod
    def _validate_files(files: Iterable[PathTypes]) -> tuple[str, ...]:
        values: list[str] = []
        for value in safe_coerce_to_tuple(files):
            value = fspath(value)
            if not (value and isinstance(value, str)):
                raise TypeError(f"invalid path {value!r}")

            values.append(os.path.normpath(value))

        return tuple(unique(values))
