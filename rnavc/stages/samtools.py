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
import subprocess

from rnavc.common.fileutils import PathTypes, fspath
from rnavc.stage import StageFailedError

READ_GROUP_CHECK = "read group check"


def has_read_groups(bam: PathTypes, executable: str = "samtools") -> bool:
    """Returns true if the header of the BAM file contains one or more @RG lines."""
    call = [executable, "view", "-H", fspath(bam)]
    logging.getLogger(__name__).debug("Checking read groups using %r", call)

    try:
        proc = subprocess.run(
            call,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as error:
        raise StageFailedError(
            READ_GROUP_CHECK,
            None,
            f"Could not run {executable!r}: {error}",
        ) from error

    if proc.returncode:
        message = f"{executable!r} failed with exit code {proc.returncode}"
        if proc.stderr.strip():
            message = f"{message}: {proc.stderr.strip()}"

        raise StageFailedError(READ_GROUP_CHECK, proc.returncode, message)

    return any(line.startswith("@RG") for line in proc.stdout.splitlines())
