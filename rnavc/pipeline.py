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
import os
import time
from shlex import quote
from types import TracebackType
from typing import IO, Iterable, Sequence

import rnavc.common.logging
from rnavc.common.command import CmdError
from rnavc.common.fileutils import (
    PathTypes,
    empty_files,
    fspath,
    make_dirs,
    missing_files,
    try_remove,
    try_remove_path,
)
from rnavc.common.text import format_parameters, format_timespan, format_timestamp
from rnavc.common.utilities import safe_coerce_to_tuple, unique
from rnavc.context import SampleContext
from rnavc.stage import CleanupWarning, MissingInputError, Stage, StageFailedError


class RunLog:
    """Per-sample log sink. Progress lines and the stdout of tools are appended to
    the .log file, and the stderr of tools is appended to the .err file."""

    def __init__(self, log_path: PathTypes, err_path: PathTypes) -> None:
        self.log_path = fspath(log_path)
        self.err_path = fspath(err_path)
        self._log: IO[bytes] | None = None
        self._err: IO[bytes] | None = None

    def open(self) -> None:
        if self._log is None:
            self._log = open(self.log_path, "ab")
            self._err = open(self.err_path, "ab")

    def close(self) -> None:
        for handle in (self._log, self._err):
            if handle is not None:
                handle.close()

        self._log = self._err = None

    @property
    def stdout(self) -> IO[bytes]:
        if self._log is None:
            raise ValueError("RunLog is not open")

        return self._log

    @property
    def stderr(self) -> IO[bytes]:
        if self._err is None:
            raise ValueError("RunLog is not open")

        return self._err

    def write(self, *lines: str) -> None:
        handle = self.stdout
        for line in lines:
            handle.write(line.encode("utf-8"))
            handle.write(b"\n")
        # Tools write directly to the underlying file descriptor
        handle.flush()

    def __enter__(self) -> RunLog:
        self.open()
        return self

    def __exit__(
        self,
        typ: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class RunResult:
    already_completed: bool
    completed: tuple[str, ...]
    skipped: tuple[str, ...]
    warnings: tuple[CleanupWarning, ...]

    def __init__(
        self,
        already_completed: bool = False,
        completed: Iterable[str] = (),
        skipped: Iterable[str] = (),
        warnings: Iterable[CleanupWarning] = (),
    ) -> None:
        self.already_completed = already_completed
        self.completed = tuple(completed)
        self.skipped = tuple(skipped)
        self.warnings = tuple(warnings)

    def __repr__(self) -> str:
        return (
            f"RunResult(already_completed={self.already_completed}, "
            f"completed={self.completed!r}, skipped={self.skipped!r}, "
            f"warnings={len(self.warnings)})"
        )


class PipelineRunner:
    """Runs a linear sequence of stages for a single sample.

    A run is resumable: if the terminal completion marker exists the run is a
    no-op, and otherwise every stage whose outputs already exist is skipped. The
    first failing stage aborts the run, leaving partial outputs in place, so that
    the run can be resumed once the problem has been fixed.

    With 'remove_empty_files', empty files in the output folder (including an
    empty completion marker) are treated as the output of an interrupted tool.
    """

    def __init__(
        self,
        *,
        reset_logs: bool = True,
        remove_empty_files: bool = False,
        cleanup: bool = True,
    ) -> None:
        self.reset_logs = reset_logs
        self.remove_empty_files = remove_empty_files
        self.cleanup = cleanup
        self._logger = logging.getLogger(__name__)

    def run(
        self,
        stages: Iterable[Stage],
        context: SampleContext,
        *,
        completion_marker: Iterable[PathTypes] | None = None,
        extra_cleanup: Iterable[PathTypes] = (),
        parameters: Sequence[tuple[str, object]] = (),
    ) -> RunResult:
        stages = safe_coerce_to_tuple(stages)
        if not stages:
            raise ValueError("no stages to run")

        for stage in stages:
            if not isinstance(stage, Stage):
                raise TypeError(f"Stage object expected, received {stage!r}")

        if completion_marker is None:
            marker = stages[-1].outputs
        else:
            marker = tuple(fspath(value) for value in completion_marker)

        if self._is_completed(marker):
            self._logger.info("Sample %r already completed", context.sample_id)
            return RunResult(already_completed=True)

        make_dirs(context.output_dir)

        removed: list[str] = []
        if self.remove_empty_files:
            for filename in empty_files(context.output_dir):
                self._logger.debug("Removing empty file %s", quote(filename))
                try_remove(filename)
                removed.append(filename)

        if self.reset_logs:
            try_remove(context.log_path)
            try_remove(context.err_path)

        self._logger.info(
            "Running pipeline for %r; see %s and %s for details",
            context.sample_id,
            quote(context.log_path),
            quote(context.err_path),
        )

        completed: list[str] = []
        skipped: list[str] = []
        with RunLog(context.log_path, context.err_path) as runlog:
            runlog.write(f"Started: {format_timestamp()}")
            if self.remove_empty_files:
                runlog.write(
                    "Housekeeping: Deleting empty files from the output folder",
                    *(f">Removed {filename}" for filename in removed),
                )

            if parameters:
                runlog.write(*format_parameters(parameters))
                runlog.write("---")

            for nth, stage in enumerate(stages, start=1):
                status = _Progress(nth, len(stages))
                runlog.write(stage.description)

                if stage.is_complete():
                    runlog.write(f">{stage.name} already run")
                    self._logger.info(
                        "Already finished %s", stage, extra={"status": status}
                    )
                    skipped.append(stage.name)
                    continue

                for filename in stage.missing_inputs():
                    runlog.write(f"X Missing input file {filename}")
                    raise MissingInputError(stage.name, filename)

                self._logger.info("Started %s", stage, extra={"status": status})
                start_time = time.time()
                self._run_stage(stage, runlog)
                runtime = format_timespan(time.time() - start_time)
                self._logger.info(
                    "Finished %s in %s", stage, runtime, extra={"status": status}
                )
                completed.append(stage.name)

            warnings: list[CleanupWarning] = []
            if self.cleanup:
                runlog.write("Deleting intermediate files")
                warnings = self._cleanup(stages, extra_cleanup)
                for warning in warnings:
                    runlog.write(f"X {warning}")

            runlog.write(f"Completed: {format_timestamp()}")

        self._logger.info("Pipeline completed for %r", context.sample_id)

        return RunResult(completed=completed, skipped=skipped, warnings=warnings)

    def _is_completed(self, marker: Sequence[str]) -> bool:
        if not marker or missing_files(marker):
            return False
        elif self.remove_empty_files:
            # Empty markers are removed during housekeeping and must be rebuilt
            for filename in marker:
                if os.path.isfile(filename) and not os.path.getsize(filename):
                    return False

        return True

    def _run_stage(self, stage: Stage, runlog: RunLog) -> None:
        for command in stage.commands:
            self._logger.debug("Running %s", command)
            try:
                command.run(stdout=runlog.stdout, stderr=runlog.stderr)
            except CmdError as error:
                runlog.write(f"X {stage.name} could not be started")
                raise StageFailedError(stage.name, None, str(error)) from error

            returncode = command.join()
            if returncode != 0:
                runlog.write(f"X {stage.name} failed with exit code {returncode}")
                raise StageFailedError(stage.name, returncode)

    def _cleanup(
        self,
        stages: Sequence[Stage],
        extra_cleanup: Iterable[PathTypes],
    ) -> list[CleanupWarning]:
        filenames = [fn for stage in stages for fn in stage.intermediate]
        filenames.extend(os.path.normpath(fspath(fn)) for fn in extra_cleanup)

        warnings: list[CleanupWarning] = []
        for filename in unique(filenames):
            self._logger.debug("Removing no longer needed file %s", quote(filename))
            try:
                try_remove_path(filename)
            except OSError as error:
                warning = CleanupWarning(filename, error)
                self._logger.warning("%s", warning)
                warnings.append(warning)

        return warnings


class _Progress(rnavc.common.logging.Status):
    def __init__(self, nth: int, total: int, color: str | None = None) -> None:
        super().__init__(color)
        self._nth = nth
        self._total = total

    def __str__(self) -> str:
        return f"{self._nth}/{self._total}"
