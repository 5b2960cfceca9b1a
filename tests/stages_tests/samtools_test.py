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
import stat
from pathlib import Path

import pytest

from rnavc.stage import StageFailedError
from rnavc.stages.samtools import has_read_groups


def _fake_samtools(tmp_path: Path, script: str) -> str:
    """Writes a shell script standing in for 'samtools'."""
    executable = tmp_path / "samtools"
    executable.write_text(f"#!/bin/sh\n{script}\n")
    executable.chmod(executable.stat().st_mode | stat.S_IXUSR)

    return str(executable)


def test_has_read_groups__present(tmp_path: Path) -> None:
    samtools = _fake_samtools(
        tmp_path,
        "printf '@HD\\tVN:1.6\\n@RG\\tID:S1\\tSM:S1\\n@PG\\tID:STAR\\n'",
    )

    assert has_read_groups(tmp_path / "S1.bam", samtools)


def test_has_read_groups__absent(tmp_path: Path) -> None:
    samtools = _fake_samtools(tmp_path, "printf '@HD\\tVN:1.6\\n@PG\\tID:STAR\\n'")

    assert not has_read_groups(tmp_path / "S1.bam", samtools)


def test_has_read_groups__arguments(tmp_path: Path) -> None:
    samtools = _fake_samtools(tmp_path, 'echo "$@" > "$(dirname "$0")/args"')

    has_read_groups(tmp_path / "S1.bam", samtools)

    args = (tmp_path / "args").read_text().split()
    assert args == ["view", "-H", os.fspath(tmp_path / "S1.bam")]


def test_has_read_groups__failure(tmp_path: Path) -> None:
    samtools = _fake_samtools(tmp_path, "echo 'file not found' >&2; exit 1")

    with pytest.raises(StageFailedError, match="file not found") as error:
        has_read_groups(tmp_path / "S1.bam", samtools)

    assert error.value.stage == "read group check"
    assert error.value.returncode == 1


def test_has_read_groups__missing_executable(tmp_path: Path) -> None:
    with pytest.raises(StageFailedError) as error:
        has_read_groups(tmp_path / "S1.bam", str(tmp_path / "missing"))

    assert error.value.returncode is None
