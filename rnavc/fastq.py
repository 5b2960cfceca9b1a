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

import glob
import logging
import os
import re
from dataclasses import dataclass
from typing import Iterable, Iterator

from rnavc.common.fileutils import PathTypes, fspath, strip_extensions

# Longer extensions must come first, see 'strip_extensions'
FASTQ_EXTENSIONS = (".fastq.gz", ".fq.gz", ".fastq", ".fq")

# Mate markers only match whole fields of a name, delimited by '_', '.', or '-';
# e.g. 'S1_R1_001' is mate 1, but 'SRR1234' is not
MATE_1_MARKER = re.compile(r"(?<![^_.-])R1(?![^_.-])")
MATE_2_MARKER = re.compile(r"(?<![^_.-])R2(?![^_.-])")

# Suffix of the output prefix used for each alignment job
OUTPUT_SUFFIX = "_autoSTAR_"


@dataclass(frozen=True)
class AlignmentJob:
    name: str
    files: tuple[str, ...]
    is_paired: bool
    is_compressed: bool

    def output_prefix(self, out_dir: PathTypes) -> str:
        return os.path.join(fspath(out_dir), self.name + OUTPUT_SUFFIX)

    def is_processed(self, out_dir: PathTypes) -> bool:
        """Returns true if any file or folder starting with the output prefix of this
        job exists in 'out_dir', e.g. the result of an earlier, partial run."""
        pattern = glob.escape(self.output_prefix(out_dir)) + "*"

        return any(glob.iglob(pattern))


def read_sample_list(filename: PathTypes) -> list[str]:
    """Reads a list of regular expressions, one per line; empty lines are ignored."""
    with open(fspath(filename)) as handle:
        return [line.strip() for line in handle if line.strip()]


def find_fastq_files(root: PathTypes) -> Iterator[str]:
    """Recursively yields FASTQ files (optionally gzip compressed) found below root,
    in a stable (sorted) order."""
    for dirpath, dirnames, filenames in os.walk(fspath(root)):
        dirnames.sort()

        for filename in sorted(filenames):
            if filename.endswith(FASTQ_EXTENSIONS):
                yield os.path.join(dirpath, filename)


def group_inputs(
    root: PathTypes,
    samples: Iterable[str] | None = None,
    out_dir: PathTypes | None = None,
) -> list[AlignmentJob]:
    """Groups the FASTQ files found below 'root' into alignment jobs.

    Files with an 'R1' field in their name (e.g. 'S1_R1_001.fastq.gz') are paired
    with the file in the same folder that has the first such field replaced with
    'R2'; jobs for which the mate is missing are dropped with a warning. Files with
    an 'R2' field are only used as mates, and every other file is aligned as
    single-end reads.

    If 'samples' is set, only files with paths matching one or more of the regular
    expressions are used. If 'out_dir' is set, jobs already (partially) processed
    in that folder are skipped.
    """
    log = logging.getLogger(__name__)

    filenames = list(find_fastq_files(root))
    log.info("Found %i FASTQ files in %r", len(filenames), fspath(root))

    if samples is not None:
        patterns = [re.compile(pattern) for pattern in samples]
        filenames = [
            filename
            for filename in filenames
            if any(pattern.search(filename) for pattern in patterns)
        ]

        log.info("Selected %i FASTQ files using sample list", len(filenames))

    jobs: list[AlignmentJob] = []
    for filename in filenames:
        name = strip_extensions(filename, FASTQ_EXTENSIONS)
        is_compressed = filename.endswith(".gz")

        if MATE_1_MARKER.search(name):
            dirname, basename = os.path.split(filename)
            mate_2 = os.path.join(
                dirname,
                MATE_1_MARKER.sub("R2", basename, count=1),
            )

            if not os.path.isfile(mate_2):
                log.warning("Second file for %r does not exist; skipping", name)
                continue

            job = AlignmentJob(
                name=name,
                files=(filename, mate_2),
                is_paired=True,
                is_compressed=is_compressed,
            )
        elif MATE_2_MARKER.search(name):
            continue
        else:
            job = AlignmentJob(
                name=name,
                files=(filename,),
                is_paired=False,
                is_compressed=is_compressed,
            )

        if out_dir is not None and job.is_processed(out_dir):
            log.info("Sample %r already processed; skipping", name)
            continue

        jobs.append(job)

    return jobs
